"""
Instruction set table and numeric codec for the Little Man Plus machine.

Every mailbox holds one signed 64-bit integer. Instructions are packed into
that integer by "band encoding": each opcode class owns a range of 1000
values and the operand is added to the band base.

    ┌──────────┬───────────────┬──────────────────────────────────────┐
    │ Mnemonic │ Encoding      │ Meaning                              │
    ├──────────┼───────────────┼──────────────────────────────────────┤
    │ HLT      │ 1             │ stop                                 │
    │ INP      │ 901           │ acc = next input                     │
    │ OUT      │ 902           │ emit acc                             │
    │ LDR      │ 4000          │ acc = mem[resolve(acc)]              │
    │ BWN      │ 10000         │ acc = ~acc                           │
    │ ADD n    │ 1000 + n      │ acc += mem[n]                        │
    │ SUB n    │ 2000 + n      │ acc -= mem[n]                        │
    │ STA n    │ 3000 + n      │ mem[n] = acc                         │
    │ LDA n    │ 5000 + n      │ acc = mem[n]                         │
    │ BRA n    │ 6000 + n      │ pc = n                               │
    │ BRZ n    │ 7000 + n      │ pc = n if acc == 0                   │
    │ BRP n    │ 8000 + n      │ pc = n if acc >= 0                   │
    │ BWA n    │ 11000 + n     │ acc &= mem[n]                        │
    │ BWO n    │ 12000 + n     │ acc |= mem[n]                        │
    │ BWX n    │ 13000 + n     │ acc ^= mem[n]                        │
    │ DAT n    │ n             │ raw data, never decoded              │
    └──────────┴───────────────┴──────────────────────────────────────┘

Operands are limited to [0, BAND_WIDTH). A larger operand would spill into
the next band, so encode() refuses it instead of wrapping.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

__all__ = [
    'MEMORY_SIZE', 'BAND_WIDTH', 'INT64_MIN', 'INT64_MAX',
    'Opcode', 'Instruction', 'EncodeError', 'DecodeError',
    'encode', 'decode', 'try_decode', 'disassemble', 'MNEMONICS',
    'BANDED_OPCODES', 'FIXED_OPCODES',
]

# Number of mailboxes shared by the assembler and the VM.
MEMORY_SIZE = 100

# Width of every opcode band. Pointer operands are address + MEMORY_SIZE,
# so 2 * MEMORY_SIZE must fit inside one band.
BAND_WIDTH = 1000

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


class EncodeError(ValueError):
    """Raised when an instruction cannot be packed into a mailbox."""


class DecodeError(ValueError):
    """Raised when a mailbox value matches no known instruction."""
    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Unknown opcode value: {value}")


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────

class Opcode(enum.Enum):
    # Fixed codes (no operand)
    HLT = 1
    INP = 901
    OUT = 902
    LDR = 4000
    BWN = 10000

    # Banded codes (base + operand)
    ADD = 1000
    SUB = 2000
    STA = 3000
    LDA = 5000
    BRA = 6000
    BRZ = 7000
    BRP = 8000
    BWA = 11000
    BWO = 12000
    BWX = 13000

    # Pseudo-instruction: the operand is the cell value
    DAT = 0

    @property
    def has_operand(self) -> bool:
        return self in BANDED_OPCODES or self is Opcode.DAT


FIXED_OPCODES = (Opcode.HLT, Opcode.INP, Opcode.OUT, Opcode.LDR, Opcode.BWN)

# Ascending order matters: decode() walks the bands in this order.
BANDED_OPCODES = (
    Opcode.ADD, Opcode.SUB, Opcode.STA, Opcode.LDA,
    Opcode.BRA, Opcode.BRZ, Opcode.BRP,
    Opcode.BWA, Opcode.BWO, Opcode.BWX,
)

MNEMONICS: Dict[str, Opcode] = {op.name: op for op in Opcode}

_FIXED_BY_VALUE: Dict[int, Opcode] = {op.value: op for op in FIXED_OPCODES}


# ──────────────────────────────────────────────
# Instruction
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """A resolved instruction: opcode plus numeric operand.

    Fixed opcodes always carry operand 0. For DAT the operand is the
    literal payload, for banded opcodes it is a direct address or an
    indirection marker (address + MEMORY_SIZE).
    """
    opcode: Opcode
    operand: int = 0

    def __str__(self) -> str:
        if self.opcode.has_operand:
            return f"{self.opcode.name} {self.operand}"
        return self.opcode.name


def encode(instr: Instruction) -> int:
    """Pack an instruction into a single mailbox value."""
    op = instr.opcode
    if op is Opcode.DAT:
        if not INT64_MIN <= instr.operand <= INT64_MAX:
            raise EncodeError(f"DAT value {instr.operand} does not fit in 64 bits")
        return instr.operand
    if op in FIXED_OPCODES:
        return op.value
    if not 0 <= instr.operand < BAND_WIDTH:
        raise EncodeError(
            f"{op.name}: operand {instr.operand} outside 0..{BAND_WIDTH - 1}")
    return op.value + instr.operand


def decode(value: int) -> Instruction:
    """Unpack a mailbox value. Never yields DAT."""
    fixed = _FIXED_BY_VALUE.get(value)
    if fixed is not None:
        return Instruction(fixed)
    for op in BANDED_OPCODES:
        if op.value <= value < op.value + BAND_WIDTH:
            return Instruction(op, value - op.value)
    raise DecodeError(value)


def try_decode(value: int) -> Optional[Instruction]:
    """decode() that returns None instead of raising."""
    try:
        return decode(value)
    except DecodeError:
        return None


def disassemble(cells: Iterable[int]) -> List[str]:
    """Render a memory image one line per mailbox.

    Cells that do not decode are shown as data.
    """
    lines = []
    for addr, value in enumerate(cells):
        instr = try_decode(value)
        text = str(instr) if instr is not None else f"DAT {value}"
        lines.append(f"{addr:03d}  {value:>6}  {text}")
    return lines
