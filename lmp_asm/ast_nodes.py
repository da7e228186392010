"""
AST Node definitions for Little Man Plus assembly.

The parser produces one Node per non-blank source line. A node's operand
is still symbolic: a numeric literal, a label reference, or a pointer
reference (``@label``). The resolver rewrites these into plain integers.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

from .codec import Opcode


# ──────────────────────────────────────────────
# Operands
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class NumericOperand:
    """A literal address or DAT payload."""
    value: int


@dataclass(frozen=True)
class LabelRef:
    """Resolves to the address of the named line."""
    name: str


@dataclass(frozen=True)
class PointerRef:
    """Resolves to the address of the named line plus MEMORY_SIZE.

    The VM reads such an operand as "the real address is stored in
    that cell".
    """
    name: str


Operand = Union[NumericOperand, LabelRef, PointerRef]


# ──────────────────────────────────────────────
# Node
# ──────────────────────────────────────────────

@dataclass
class Node:
    """One source line: optional label plus one instruction."""
    opcode: Opcode
    operand: Optional[Operand] = None
    label: Optional[str] = None
    line: int = 0
    text: str = ""
