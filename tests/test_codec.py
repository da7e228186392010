"""
Codec Tests for the Little Man Plus instruction set.

Checks the band encoding table, the decode priority order, and the
operand capacity limit.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from lmp_asm.codec import (
    BAND_WIDTH, BANDED_OPCODES, FIXED_OPCODES, MEMORY_SIZE,
    DecodeError, EncodeError, Instruction, Opcode,
    decode, disassemble, encode, try_decode,
)


class TestEncoding:
    """Known encodings from the opcode table."""

    def test_fixed_codes(self):
        cases = [
            (Opcode.HLT, 1),
            (Opcode.INP, 901),
            (Opcode.OUT, 902),
            (Opcode.LDR, 4000),
            (Opcode.BWN, 10000),
        ]
        for op, expected in cases:
            assert encode(Instruction(op)) == expected, op.name

    def test_banded_codes(self):
        cases = [
            (Opcode.ADD, 1012),
            (Opcode.SUB, 2012),
            (Opcode.STA, 3012),
            (Opcode.LDA, 5012),
            (Opcode.BRA, 6012),
            (Opcode.BRZ, 7012),
            (Opcode.BRP, 8012),
            (Opcode.BWA, 11012),
            (Opcode.BWO, 12012),
            (Opcode.BWX, 13012),
        ]
        for op, expected in cases:
            assert encode(Instruction(op, 12)) == expected, op.name

    def test_dat_is_verbatim(self):
        assert encode(Instruction(Opcode.DAT, 42)) == 42
        assert encode(Instruction(Opcode.DAT, 0)) == 0
        assert encode(Instruction(Opcode.DAT, -7)) == -7

    def test_pointer_operand_fits_band(self):
        """address + MEMORY_SIZE is still a legal operand."""
        operand = MEMORY_SIZE + MEMORY_SIZE - 1
        assert encode(Instruction(Opcode.LDA, operand)) == 5000 + operand

    def test_operand_overflow_rejected(self):
        with pytest.raises(EncodeError):
            encode(Instruction(Opcode.ADD, BAND_WIDTH))
        with pytest.raises(EncodeError):
            encode(Instruction(Opcode.STA, -1))

    def test_dat_outside_64_bits_rejected(self):
        with pytest.raises(EncodeError):
            encode(Instruction(Opcode.DAT, 1 << 63))


class TestDecoding:

    def test_round_trip_every_operand(self):
        for op in BANDED_OPCODES:
            for operand in range(BAND_WIDTH):
                instr = Instruction(op, operand)
                assert decode(encode(instr)) == instr

    def test_round_trip_fixed(self):
        for op in FIXED_OPCODES:
            assert decode(encode(Instruction(op))) == Instruction(op)

    def test_fixed_codes_win_over_bands(self):
        assert decode(4000).opcode is Opcode.LDR
        assert decode(10000).opcode is Opcode.BWN

    def test_unknown_values(self):
        for value in (0, -1, 2, 900, 903, 4001, 4999, 9000, 9999, 10001, 14000):
            with pytest.raises(DecodeError) as exc:
                decode(value)
            assert exc.value.value == value

    def test_try_decode(self):
        assert try_decode(902) == Instruction(Opcode.OUT)
        assert try_decode(9500) is None


class TestText:

    def test_str(self):
        assert str(Instruction(Opcode.ADD, 5)) == "ADD 5"
        assert str(Instruction(Opcode.HLT)) == "HLT"
        assert str(Instruction(Opcode.DAT)) == "DAT 0"

    def test_disassemble(self):
        lines = disassemble([1005, 1, 77777])
        assert len(lines) == 3
        assert lines[0].startswith("000")
        assert lines[0].endswith("ADD 5")
        assert lines[1].endswith("HLT")
        assert lines[2].endswith("DAT 77777")
