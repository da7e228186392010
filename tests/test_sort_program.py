"""
End-to-end: the bundled bubble sort reads ten numbers, sorts them in
mailboxes 90..99 through @pos / @next pointers, and prints them.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from lmp_vm import HALTED, StepKind, StopReason, VirtualMachine

EXAMPLES = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "examples")

VALUES = [32, 7, 19, 75, 21, 14, 95, 35, 61, 50]


@pytest.fixture
def sort_vm():
    with open(os.path.join(EXAMPLES, "bubble_sort.lmp"), encoding='utf-8') as f:
        source = f.read()
    vm = VirtualMachine()
    vm.compile(source)
    return vm


class TestBubbleSort:

    def test_host_loop(self, sort_vm):
        """Drive the machine one cycle at a time like an interactive host."""
        pending = list(VALUES)
        outputs = []
        for _ in range(100_000):
            result = sort_vm.step()
            if result.kind is StepKind.INPUT_REQUIRED:
                sort_vm.input(pending.pop(0))
            elif result.kind is StepKind.OUTPUT:
                outputs.append(result.value)
            elif result.kind is StepKind.HALTED:
                break
            else:
                assert result.kind is StepKind.ADVANCED
        assert outputs == sorted(VALUES)
        assert sort_vm.halted
        assert sort_vm.step() == HALTED

    def test_run(self, sort_vm):
        result = sort_vm.run(inputs=VALUES)
        assert result.reason is StopReason.HALT
        assert result.outputs == [7, 14, 19, 21, 32, 35, 50, 61, 75, 95]
        assert list(sort_vm.memory[90:100]) == sorted(VALUES)

    def test_already_sorted_and_duplicates(self, sort_vm):
        values = [5, 5, 1, 1, 9, 0, 3, 3, 3, 2]
        assert sort_vm.run(inputs=values).outputs == sorted(values)

    def test_negative_values(self, sort_vm):
        values = [-4, 10, -100, 0, 7, -1, 3, 2, 8, -9]
        assert sort_vm.run(inputs=values).outputs == sorted(values)

    def test_rerun_after_reset(self, sort_vm):
        sort_vm.run(inputs=VALUES)
        assert sort_vm.reset()
        # The sorted data survives, the program runs again from the top.
        result = sort_vm.run(inputs=list(reversed(range(10))))
        assert result.outputs == list(range(10))
