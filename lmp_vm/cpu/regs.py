"""
Little Man Plus — CPU register set

Register model:
  PC        — program counter, index of the next mailbox to fetch
  ACC       — signed 64-bit accumulator (wraps, no overflow trap)
  cycles    — executed cycle counter (diagnostic only)
  accessing — last mailbox read or written (diagnostic, for display)

There are no condition flags: BRZ/BRP test the accumulator directly when
they execute.
"""


class Registers:
    """Little Man Plus register file."""

    __slots__ = ('PC', 'ACC', 'cycles', 'accessing')

    def __init__(self):
        self.PC: int = 0
        self.ACC: int = 0
        self.cycles: int = 0
        self.accessing: int = 0

    @property
    def zero(self) -> bool:
        return self.ACC == 0

    @property
    def positive(self) -> bool:
        """BRP semantics: zero counts as positive."""
        return self.ACC >= 0

    def display(self) -> str:
        """Format register state for trace lines."""
        return f"PC={self.PC:03d} ACC={self.ACC} CYC={self.cycles}"

    def reset(self):
        self.PC = 0
        self.ACC = 0
        self.cycles = 0
        self.accessing = 0
