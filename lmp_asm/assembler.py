"""
Little Man Plus assembler front door.

Pipeline:
    source ──> Lexer ──> Parser ──> resolve_labels ──> [Instruction]
                                                         │
                                               encode() ─┴─> memory image

assemble() is a pure function of the source text. The Assembler class
wraps the same pipeline and keeps the symbol table and resolved program
around for listings.
"""

from __future__ import annotations
import logging
from typing import Dict, List

from .ast_nodes import Node
from .codec import MEMORY_SIZE, Instruction, encode
from .errors import AssemblerError, ProgramSizeError
from .lexer import Lexer
from .parser import Parser
from .resolver import collect_labels, resolve_labels

__all__ = ['Assembler', 'AssemblerError', 'assemble', 'assemble_image']

log = logging.getLogger('lmp.asm')


class Assembler:
    """Two-pass Little Man Plus assembler.

    Usage:
        asm = Assembler()
        program = asm.assemble(source_text)
        print(asm.get_listing())
    """

    def __init__(self, memory_size: int = MEMORY_SIZE):
        self.memory_size = memory_size
        self.symbols: Dict[str, int] = {}
        self.program: List[Instruction] = []
        self._nodes: List[Node] = []

    def assemble(self, source: str) -> List[Instruction]:
        self.symbols = {}
        self.program = []
        tokens = Lexer(source).tokenize()
        self._nodes = Parser(tokens, source).parse()
        if len(self._nodes) > self.memory_size:
            raise ProgramSizeError(len(self._nodes), self.memory_size)
        self.symbols = collect_labels(self._nodes)
        self.program = resolve_labels(self._nodes, self.memory_size)
        log.debug("assembled %d instructions, %d labels",
                  len(self.program), len(self.symbols))
        return self.program

    def image(self) -> List[int]:
        """Encoded cells of the last assembled program."""
        return [encode(instr) for instr in self.program]

    def get_listing(self) -> str:
        """Return a human-readable listing: address, cell value, source."""
        lines = [f"{'ADDR':>4}  {'CELL':>6}  {'INSTR':<10}  SOURCE", "-" * 48]
        for addr, (node, instr) in enumerate(zip(self._nodes, self.program)):
            raw = node.text
            if len(raw) > 30:
                raw = raw[:30]
            lines.append(f"{addr:>4}  {encode(instr):>6}  {str(instr):<10}  {raw}")
        return '\n'.join(lines)


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: str) -> List[Instruction]:
    """Assemble source text into resolved instructions."""
    return Assembler().assemble(source)


def assemble_image(source: str) -> List[int]:
    """Assemble source text straight to encoded mailbox values."""
    asm = Assembler()
    asm.assemble(source)
    return asm.image()
