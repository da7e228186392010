"""
Little Man Plus — mailbox memory with indirection

Address space for a machine of N mailboxes:
  0 .. N-1       direct addresses
  N .. 2N-1      indirection markers: N+k means "the real address is the
                 value stored in mailbox k", which may itself be another
                 marker and is followed again
  anything else  out of range

Out-of-range accesses never raise past the VM: they raise MemoryFault,
which the VM turns into a terminal Fault step result.
"""

from __future__ import annotations
import enum
from typing import Iterable, List, Optional

from lmp_asm.codec import BAND_WIDTH, MEMORY_SIZE


class FaultReason(enum.Enum):
    ADDRESS_OUT_OF_RANGE = 'ADDRESS_OUT_OF_RANGE'
    POINTER_OUT_OF_RANGE = 'POINTER_OUT_OF_RANGE'
    INDIRECTION_CYCLE = 'INDIRECTION_CYCLE'


class MemoryFault(Exception):
    """Raised on an access the machine cannot perform."""
    def __init__(self, reason: FaultReason, address: int):
        self.reason = reason
        self.address = address
        super().__init__(f"{reason.value} at {address}")


class Memory:
    """Fixed array of signed 64-bit mailboxes.

    Code and data share the same cells, so a program may overwrite its
    own instructions.
    """

    def __init__(self, size: int = MEMORY_SIZE, max_depth: Optional[int] = None):
        # Every indirection marker (size + k) must fit in an opcode band.
        if not 0 < size <= BAND_WIDTH // 2:
            raise ValueError(f"Memory size {size} outside 1..{BAND_WIDTH // 2}")
        self.size = size
        # A chain longer than the number of mailboxes must revisit a cell.
        self.max_depth = size if max_depth is None else max_depth
        self._cells: List[int] = [0] * size

    # --- Core read/write ---

    def _check(self, addr: int):
        if not 0 <= addr < self.size:
            raise MemoryFault(FaultReason.ADDRESS_OUT_OF_RANGE, addr)

    def read(self, addr: int) -> int:
        self._check(addr)
        return self._cells[addr]

    def write(self, addr: int, value: int):
        self._check(addr)
        self._cells[addr] = value

    # --- Indirection ---

    def resolve(self, operand: int) -> int:
        """Follow indirection markers until a direct address is reached."""
        depth = 0
        while True:
            if operand >= 2 * self.size:
                raise MemoryFault(FaultReason.POINTER_OUT_OF_RANGE, operand)
            if operand < 0:
                raise MemoryFault(FaultReason.ADDRESS_OUT_OF_RANGE, operand)
            if operand < self.size:
                return operand
            depth += 1
            if depth > self.max_depth:
                raise MemoryFault(FaultReason.INDIRECTION_CYCLE, operand)
            operand = self._cells[operand - self.size]

    # --- Bulk load ---

    def clear(self):
        self._cells = [0] * self.size

    def load(self, cells: Iterable[int]):
        """Write an image starting at mailbox 0."""
        for addr, value in enumerate(cells):
            self._check(addr)
            self._cells[addr] = value

    def snapshot(self) -> List[int]:
        """Copy of every mailbox, for display."""
        return list(self._cells)

    # --- Dump ---

    def dump(self, start: int = 0, length: Optional[int] = None, per_row: int = 10) -> str:
        """Decimal dump of memory, per_row cells per line."""
        end = self.size if length is None else min(self.size, start + length)
        lines = []
        for row in range(start, end, per_row):
            cells = ' '.join(f'{self._cells[a]:>6}' for a in range(row, min(row + per_row, end)))
            lines.append(f'{row:03d}  {cells}')
        return '\n'.join(lines)
