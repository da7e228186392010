"""
Little Man Plus Virtual Machine — main VM class

Integrates:
  - CPU registers (cpu/regs.py)
  - Mailbox memory with indirection (mem/memory.py)
  - Instruction codec (lmp_asm/codec.py)
  - Accumulator arithmetic (cpu/alu.py)

Execution model (one call to step() == one cycle):
  1. Stop early if halted or faulted (no cycle is counted)
  2. Halt if PC has run past the last mailbox
  3. Fetch the mailbox at PC and decode it
       - undecodable value: skip it, PC += 1, result ADVANCED
       - INP with no buffered input: result INPUT_REQUIRED, nothing changes
  4. Execute the handler: resolve operands, update ACC / memory / PC
  5. Any bad address raises MemoryFault, which becomes a terminal FAULT

Step results:
  ADVANCED        instruction executed, PC moved on
  OUTPUT(v)       OUT executed, v is the accumulator
  INPUT_REQUIRED  waiting on input(); repeat step() after supplying it
  HALTED          HLT executed or PC ran off the end of memory
  FAULT(f)        a runtime fault stopped the machine

The host drives the machine: it calls step() (or run()) in its own loop,
so it can render or read keys between cycles while the machine waits for
input.
"""

from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from lmp_asm import Assembler, AssemblerError, ProgramSizeError
from lmp_asm.codec import MEMORY_SIZE, DecodeError, Instruction, Opcode, decode, encode
from lmp_asm.codec import INT64_MAX, INT64_MIN

from .cpu import alu
from .cpu.regs import Registers
from .mem.memory import FaultReason, Memory, MemoryFault

log = logging.getLogger('lmp.vm')


# ──────────────────────────────────────────────
# Results
# ──────────────────────────────────────────────

class StepKind(Enum):
    ADVANCED = 'ADVANCED'
    OUTPUT = 'OUTPUT'
    INPUT_REQUIRED = 'INPUT_REQUIRED'
    HALTED = 'HALTED'
    FAULT = 'FAULT'


@dataclass(frozen=True)
class Fault:
    """Why and where the machine stopped abnormally."""
    reason: FaultReason
    address: int
    pc: int

    def __str__(self) -> str:
        return f"{self.reason.value} (operand {self.address}) at PC={self.pc}"


@dataclass(frozen=True)
class StepResult:
    kind: StepKind
    value: Optional[int] = None
    fault: Optional[Fault] = None

    @classmethod
    def output(cls, value: int) -> StepResult:
        return cls(StepKind.OUTPUT, value=value)

    @classmethod
    def faulted(cls, fault: Fault) -> StepResult:
        return cls(StepKind.FAULT, fault=fault)

    def __str__(self) -> str:
        if self.kind is StepKind.OUTPUT:
            return f"OUTPUT({self.value})"
        if self.kind is StepKind.FAULT:
            return f"FAULT({self.fault})"
        return self.kind.value


ADVANCED = StepResult(StepKind.ADVANCED)
INPUT_REQUIRED = StepResult(StepKind.INPUT_REQUIRED)
HALTED = StepResult(StepKind.HALTED)


class StopReason(Enum):
    HALT = 'HALT'
    FAULT = 'FAULT'
    INPUT = 'INPUT'
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


@dataclass
class RunResult:
    reason: StopReason
    outputs: List[int] = field(default_factory=list)
    fault: Optional[Fault] = None


# ──────────────────────────────────────────────
# Errors
# ──────────────────────────────────────────────

class VMError(Exception):
    """Base class for errors surfaced by VirtualMachine."""


class CompileFailed(VMError):
    """The source did not assemble. The AssemblerError is the __cause__."""


class ProgramTooLarge(VMError):
    def __init__(self, length: int, capacity: int):
        self.length = length
        self.capacity = capacity
        super().__init__(
            f"Program is {length} cells long; memory holds at most {capacity}")


# ──────────────────────────────────────────────
# The machine
# ──────────────────────────────────────────────

class VirtualMachine:
    """Little Man Plus virtual machine.

    Usage:
        vm = VirtualMachine()
        vm.compile(source)
        while True:
            result = vm.step()
            if result.kind is StepKind.INPUT_REQUIRED:
                vm.input(int(input("? ")))
            elif result.kind is StepKind.OUTPUT:
                print(result.value)
            elif result.kind in (StepKind.HALTED, StepKind.FAULT):
                break
    """

    DEFAULT_MAX_CYCLES = 1_000_000

    def __init__(self, memory_size: int = MEMORY_SIZE):
        self.regs = Registers()
        self.mem = Memory(memory_size)

        self._halted = False
        self._fault: Optional[Fault] = None
        self._pending_input: Optional[int] = None

        # Breakpoints: set of PC addresses where run() stops with BREAK
        self._breakpoints: Set[int] = set()

        self._trace = False
        self._trace_output: List[str] = []

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Read-only state
    # ══════════════════════════════════════════════

    @property
    def program_counter(self) -> int:
        return self.regs.PC

    @property
    def accumulator(self) -> int:
        return self.regs.ACC

    @property
    def cycles(self) -> int:
        return self.regs.cycles

    @property
    def accessing(self) -> int:
        """Last mailbox read or written, for highlighting."""
        return self.regs.accessing

    @property
    def halted(self) -> bool:
        return self._halted

    @property
    def fault(self) -> Optional[Fault]:
        return self._fault

    @property
    def stopped(self) -> bool:
        return self._halted or self._fault is not None

    @property
    def pending_input(self) -> Optional[int]:
        return self._pending_input

    @property
    def awaiting_input(self) -> bool:
        """True if the next step() would return INPUT_REQUIRED."""
        if self.stopped or self._pending_input is not None:
            return False
        if not 0 <= self.regs.PC < self.mem.size:
            return False
        return self.mem.read(self.regs.PC) == Opcode.INP.value

    @property
    def memory(self) -> Tuple[int, ...]:
        return tuple(self.mem.snapshot())

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def compile(self, source: str):
        """Assemble source and load it, fully resetting the machine.

        Raises CompileFailed or ProgramTooLarge; memory is untouched on
        failure.
        """
        try:
            program = Assembler(self.mem.size).assemble(source)
        except ProgramSizeError as e:
            raise ProgramTooLarge(e.length, e.capacity) from e
        except AssemblerError as e:
            log.info("compile failed: %s", e)
            raise CompileFailed(str(e)) from e

        self.load_image([encode(instr) for instr in program])

    def load_image(self, cells: Iterable[int]):
        """Load a raw memory image, fully resetting the machine."""
        cells = list(cells)
        if len(cells) > self.mem.size:
            raise ProgramTooLarge(len(cells), self.mem.size)
        for value in cells:
            if (isinstance(value, bool) or not isinstance(value, int)
                    or not INT64_MIN <= value <= INT64_MAX):
                raise ValueError(f"Memory cell value {value!r} is not a 64-bit integer")

        self.mem.clear()
        self.mem.load(cells)
        self._reset_state()
        log.info("loaded %d cells", len(cells))

    # ══════════════════════════════════════════════
    # Host interaction
    # ══════════════════════════════════════════════

    def input(self, value: int):
        """Buffer one input value, replacing any unconsumed one."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"Input must be an integer, got {value!r}")
        if not INT64_MIN <= value <= INT64_MAX:
            raise ValueError(f"Input {value} does not fit in 64 bits")
        self._pending_input = value

    def reset(self) -> bool:
        """Rewind registers if the machine is stopped. Memory is kept.

        Returns True if the reset happened.
        """
        if not self.stopped:
            log.debug("reset ignored: machine still running")
            return False
        self._reset_state()
        return True

    def _reset_state(self):
        self.regs.reset()
        self._halted = False
        self._fault = None
        self._pending_input = None

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> StepResult:
        """Advance exactly one cycle."""
        if self._fault is not None:
            return StepResult.faulted(self._fault)
        if self._halted:
            return HALTED

        pc = self.regs.PC
        if pc >= self.mem.size:
            self.regs.cycles += 1
            self._halted = True
            log.info("program ran to end of memory after %d cycles", self.regs.cycles)
            return HALTED

        # Fetch + decode
        value = self.mem.read(pc)
        try:
            instr = decode(value)
        except DecodeError:
            self.regs.cycles += 1
            self.regs.PC = pc + 1
            log.debug("skipping undecodable cell %d at PC=%d", value, pc)
            self._trace_line(pc, f"?{value}")
            return ADVANCED

        if instr.opcode is Opcode.INP and self._pending_input is None:
            return INPUT_REQUIRED

        # Execute
        self.regs.cycles += 1
        try:
            result = self._execute(instr)
        except MemoryFault as e:
            self._fault = Fault(e.reason, e.address, pc)
            log.warning("fault: %s", self._fault)
            self._trace_line(pc, f"{instr} !! {e.reason.value}")
            return StepResult.faulted(self._fault)

        self._trace_line(pc, str(instr))
        if result is HALTED:
            log.info("halted after %d cycles", self.regs.cycles)
        return result

    def run(self, max_cycles: Optional[int] = None,
            inputs: Optional[Iterable[int]] = None,
            input_fn: Optional[Callable[[], int]] = None,
            output_fn: Optional[Callable[[int], None]] = None) -> RunResult:
        """Step until the machine stops or needs input nobody can give.

        Args:
            max_cycles: cycle budget for this call before TIMEOUT
            inputs: values fed to INP in order
            input_fn: called for a value once inputs are used up
            output_fn: called with each OUT value as soon as it is produced

        Returns:
            RunResult with the StopReason and every value output
        """
        if max_cycles is None:
            max_cycles = self.DEFAULT_MAX_CYCLES

        queue = deque(inputs or ())
        outputs: List[int] = []
        start = self.regs.cycles

        while self.regs.cycles - start < max_cycles:
            if (self.regs.cycles > start and not self.stopped
                    and self.regs.PC in self._breakpoints):
                return RunResult(StopReason.BREAK, outputs)

            result = self.step()
            kind = result.kind
            if kind is StepKind.OUTPUT:
                outputs.append(result.value)
                if output_fn is not None:
                    output_fn(result.value)
            elif kind is StepKind.INPUT_REQUIRED:
                if queue:
                    self.input(queue.popleft())
                elif input_fn is not None:
                    self.input(input_fn())
                else:
                    return RunResult(StopReason.INPUT, outputs)
            elif kind is StepKind.HALTED:
                return RunResult(StopReason.HALT, outputs)
            elif kind is StepKind.FAULT:
                return RunResult(StopReason.FAULT, outputs, result.fault)

        return RunResult(StopReason.TIMEOUT, outputs)

    # ══════════════════════════════════════════════
    # Operand helpers
    # ══════════════════════════════════════════════

    def _resolve(self, operand: int) -> int:
        addr = self.mem.resolve(operand)
        self.regs.accessing = addr
        return addr

    def _load(self, operand: int) -> int:
        return self.mem.read(self._resolve(operand))

    def _branch(self, target: int):
        """Branch targets are direct addresses only."""
        if not 0 <= target < self.mem.size:
            raise MemoryFault(FaultReason.ADDRESS_OUT_OF_RANGE, target)
        self.regs.PC = target

    def _next(self) -> StepResult:
        self.regs.PC += 1
        return ADVANCED

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(operand) -> StepResult

    def _execute(self, instr: Instruction) -> StepResult:
        return self._dispatch[instr.opcode](instr.operand)

    def _build_dispatch(self) -> Dict[Opcode, Callable[[int], StepResult]]:
        return {
            Opcode.ADD: self._op_add,
            Opcode.SUB: self._op_sub,
            Opcode.STA: self._op_sta,
            Opcode.LDA: self._op_lda,
            Opcode.LDR: self._op_ldr,
            Opcode.BRA: self._op_bra,
            Opcode.BRZ: self._op_brz,
            Opcode.BRP: self._op_brp,
            Opcode.BWN: self._op_bwn,
            Opcode.BWA: self._op_bwa,
            Opcode.BWO: self._op_bwo,
            Opcode.BWX: self._op_bwx,
            Opcode.INP: self._op_inp,
            Opcode.OUT: self._op_out,
            Opcode.HLT: self._op_hlt,
        }

    # ── Arithmetic ──

    def _op_add(self, operand):
        self.regs.ACC = alu.add(self.regs.ACC, self._load(operand))
        return self._next()

    def _op_sub(self, operand):
        self.regs.ACC = alu.sub(self.regs.ACC, self._load(operand))
        return self._next()

    # ── Data movement ──

    def _op_sta(self, operand):
        self.mem.write(self._resolve(operand), self.regs.ACC)
        return self._next()

    def _op_lda(self, operand):
        self.regs.ACC = self._load(operand)
        return self._next()

    def _op_ldr(self, operand):
        # The accumulator itself is the operand.
        self.regs.ACC = self._load(self.regs.ACC)
        return self._next()

    # ── Control transfer ──

    def _op_bra(self, operand):
        self._branch(operand)
        return ADVANCED

    def _op_brz(self, operand):
        if self.regs.zero:
            self._branch(operand)
            return ADVANCED
        return self._next()

    def _op_brp(self, operand):
        if self.regs.positive:
            self._branch(operand)
            return ADVANCED
        return self._next()

    # ── Bitwise ──

    def _op_bwn(self, operand):
        self.regs.ACC = alu.bw_not(self.regs.ACC)
        return self._next()

    def _op_bwa(self, operand):
        self.regs.ACC = alu.bw_and(self.regs.ACC, self._load(operand))
        return self._next()

    def _op_bwo(self, operand):
        self.regs.ACC = alu.bw_or(self.regs.ACC, self._load(operand))
        return self._next()

    def _op_bwx(self, operand):
        self.regs.ACC = alu.bw_xor(self.regs.ACC, self._load(operand))
        return self._next()

    # ── I/O ──

    def _op_inp(self, operand):
        self.regs.ACC = self._pending_input
        self._pending_input = None
        return self._next()

    def _op_out(self, operand):
        value = self.regs.ACC
        self.regs.PC += 1
        return StepResult.output(value)

    def _op_hlt(self, operand):
        self._halted = True
        return HALTED

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        """run() stops with BREAK before executing the cell at addr."""
        self._breakpoints.add(addr)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Enable per-cycle trace lines."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def dump(self, start: int = 0, length: Optional[int] = None) -> str:
        """Decimal dump of the mailboxes, ten per line."""
        return self.mem.dump(start, length)

    def _trace_line(self, pc: int, text: str):
        if self._trace:
            self._trace_output.append(f"{pc:03d}: {text:<10} {self.regs.display()}")
