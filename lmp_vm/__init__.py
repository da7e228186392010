"""
Little Man Plus virtual machine.

    vm = VirtualMachine()
    vm.compile(source)
    result = vm.run(inputs=[1, 2, 3])
"""

from .emu import (
    VirtualMachine, StepKind, StepResult, Fault, StopReason, RunResult,
    VMError, CompileFailed, ProgramTooLarge,
    ADVANCED, INPUT_REQUIRED, HALTED,
)
from .mem.memory import FaultReason, Memory, MemoryFault
from .cpu.regs import Registers
