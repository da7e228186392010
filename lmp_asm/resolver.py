"""
Two-pass label resolution.

  Pass 1: Every node's address is its position in the node list, so a
          label's address is simply the index of the line it is attached
          to. DAT lines and instructions both take one mailbox.
  Pass 2: Rewrite every symbolic operand into an integer. A pointer
          reference becomes ``address + memory_size``, the indirection
          marker the VM follows at run time.
"""

from __future__ import annotations
from typing import Dict, List

from .ast_nodes import LabelRef, Node, NumericOperand, PointerRef
from .codec import BAND_WIDTH, MEMORY_SIZE, Instruction, Opcode
from .errors import OperandRangeError, UnknownLabelError


def collect_labels(nodes: List[Node]) -> Dict[str, int]:
    """Pass 1: label name -> address."""
    return {node.label: addr for addr, node in enumerate(nodes) if node.label}


def resolve_labels(nodes: List[Node], memory_size: int = MEMORY_SIZE) -> List[Instruction]:
    """Pass 2: produce resolved instructions, one per node."""
    symbols = collect_labels(nodes)
    return [_resolve_node(node, symbols, memory_size) for node in nodes]


def _resolve_node(node: Node, symbols: Dict[str, int], memory_size: int) -> Instruction:
    operand = node.operand
    if operand is None:
        return Instruction(node.opcode)

    if isinstance(operand, NumericOperand):
        value = operand.value
    elif isinstance(operand, LabelRef):
        if operand.name not in symbols:
            raise UnknownLabelError(operand.name, node.line, node.text)
        value = symbols[operand.name]
    elif isinstance(operand, PointerRef):
        if operand.name not in symbols:
            raise UnknownLabelError(operand.name, node.line, node.text, pointer=True)
        value = symbols[operand.name] + memory_size
    else:
        raise TypeError(f"Unexpected operand {operand!r}")

    if node.opcode is not Opcode.DAT and not 0 <= value < BAND_WIDTH:
        raise OperandRangeError(
            f"{node.opcode.name}: operand {value} outside 0..{BAND_WIDTH - 1}",
            node.line, node.text)
    return Instruction(node.opcode, value)
