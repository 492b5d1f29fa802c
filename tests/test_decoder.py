"""
LC-3 decoder tests: sign extension and field extraction.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from lc3vm.cpu.decoder import (
    sign_extend, decode, opcode, OPCODES, RESERVED_OPCODES,
    OP_ADD, OP_BR, OP_JSR, OP_RTI, OP_RES, OP_TRAP,
)


class TestSignExtend:

    @pytest.mark.parametrize("field, bits, expected", [
        (0b11111, 5, 0xFFFF),
        (0b01111, 5, 0x000F),
        (0b10000, 5, 0xFFF0),
        (0b111111, 6, 0xFFFF),
        (0b100000, 6, 0xFFE0),
        (0b011111, 6, 0x001F),
        (0x1FF, 9, 0xFFFF),
        (0x100, 9, 0xFF00),
        (0x0FF, 9, 0x00FF),
        (0x7FF, 11, 0xFFFF),
        (0x400, 11, 0xFC00),
        (0x3FF, 11, 0x03FF),
    ])
    def test_widths(self, field, bits, expected):
        assert sign_extend(field, bits) == expected

    def test_zero(self):
        for bits in (5, 6, 9, 11):
            assert sign_extend(0, bits) == 0

    def test_high_bits_ignored(self):
        """Bits above the field width do not leak into the result"""
        assert sign_extend(0xFFE1, 5) == 0x0001

    def test_full_width(self):
        assert sign_extend(0x8000, 16) == 0x8000
        assert sign_extend(1, 1) == 0xFFFF


class TestFields:

    def test_add_register_form(self):
        """ADD R1, R2, R3 = 0x1283"""
        ins = decode(0x1283)
        assert ins.opcode == OP_ADD
        assert ins.mnemonic == 'ADD'
        assert (ins.dr, ins.sr1, ins.sr2) == (1, 2, 3)
        assert not ins.imm_flag

    def test_add_immediate_negative(self):
        """ADD R0, R0, #-1 = 0x103F"""
        ins = decode(0x103F)
        assert ins.imm_flag
        assert ins.imm5 == 0xFFFF

    def test_br_fields(self):
        """BRnzp #-1 = 0x0FFF"""
        ins = decode(0x0FFF)
        assert ins.opcode == OP_BR
        assert ins.nzp == 0b111
        assert ins.pc_offset9 == 0xFFFF

    def test_jsr_long(self):
        """JSR #0x200 = 0x4A00"""
        ins = decode(0x4A00)
        assert ins.opcode == OP_JSR
        assert ins.long_flag
        assert ins.pc_offset11 == 0x0200

    def test_jsrr_base(self):
        """JSRR R5 = 0x4140"""
        ins = decode(0x4140)
        assert not ins.long_flag
        assert ins.base_r == 5

    def test_ldr_offset6(self):
        """LDR R2, R3, #-2 = 0x64FE"""
        ins = decode(0x64FE)
        assert ins.dr == 2
        assert ins.base_r == 3
        assert ins.offset6 == 0xFFFE

    def test_trap_vector(self):
        ins = decode(0xF025)
        assert ins.opcode == OP_TRAP
        assert ins.trap_vector == 0x25

    def test_every_word_decodes(self):
        """decode() never fails, reserved opcodes included"""
        for op in range(16):
            assert decode(op << 12).opcode == op
        assert opcode(0x8000) == OP_RTI
        assert opcode(0xD000) == OP_RES

    def test_opcode_table(self):
        assert len(OPCODES) == 16
        assert RESERVED_OPCODES == {OP_RTI, OP_RES}
