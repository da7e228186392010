"""Assembler exception hierarchy."""

from __future__ import annotations

__all__ = [
    'AssemblerError', 'AsmSyntaxError', 'UnknownLabelError', 'OperandRangeError',
    'ProgramSizeError',
]


class AssemblerError(Exception):
    """Raised on assembly errors."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(f"Line {line_num}: {message}" if line_num else message)


class AsmSyntaxError(AssemblerError):
    """The grammar could not consume the input."""


class UnknownLabelError(AssemblerError):
    """An operand names a label that is never defined."""
    def __init__(self, label: str, line_num: int = 0, line_text: str = "",
                 pointer: bool = False):
        self.label = label
        self.pointer = pointer
        kind = "pointer label" if pointer else "label"
        super().__init__(f"Unknown {kind}: '{label}'", line_num, line_text)


class OperandRangeError(AssemblerError):
    """A resolved operand does not fit in its opcode band."""


class ProgramSizeError(AssemblerError):
    """The program has more lines than the machine has mailboxes."""
    def __init__(self, length: int, capacity: int):
        self.length = length
        self.capacity = capacity
        super().__init__(
            f"Program is {length} cells long; memory holds at most {capacity}")
