"""
LC-3 Disassembler

Turns instruction words back into assembly text for execution traces
and the `--disasm` listing.

API Usage:
    from lc3vm.cpu.disasm import disassemble, disassemble_word

    line = disassemble_word(0x1025, 0x3000)
    print(line.format())        # "x3000: 1025  ADD R0, R0, #5"

    for d in disassemble([0x5020, 0xF025], base_addr=0x3000):
        print(d.format())

PC-relative operands (BR, LD, LDI, LEA, ST, STI, JSR) are printed as the
absolute target address, computed from the incremented PC exactly as the
CPU does. Reserved opcodes are printed as .FILL data.
"""

from dataclasses import dataclass
from typing import Iterable, List

from .decoder import (
    decode,
    OP_BR, OP_ADD, OP_LD, OP_ST, OP_JSR, OP_AND, OP_LDR, OP_STR,
    OP_NOT, OP_LDI, OP_STI, OP_JMP, OP_LEA, OP_TRAP, RESERVED_OPCODES,
)
from ..traps import TRAP_GETC, TRAP_OUT, TRAP_PUTS, TRAP_IN, TRAP_PUTSP, TRAP_HALT

TRAP_NAMES = {
    TRAP_GETC:  'GETC',
    TRAP_OUT:   'OUT',
    TRAP_PUTS:  'PUTS',
    TRAP_IN:    'IN',
    TRAP_PUTSP: 'PUTSP',
    TRAP_HALT:  'HALT',
}


@dataclass
class DisassembledInstruction:
    """One decoded word with its formatted text."""
    address: int
    word: int
    mnemonic: str
    operand_str: str
    comment: str = ""

    def format(self) -> str:
        asm = f"{self.mnemonic} {self.operand_str}".strip()
        line = f"x{self.address:04X}: {self.word:04X}  {asm}"
        if self.comment:
            line += f"  ; {self.comment}"
        return line


def _signed(value: int) -> int:
    return value - 0x10000 if value & 0x8000 else value


def _target(address: int, offset: int) -> str:
    return f"x{(address + 1 + offset) & 0xFFFF:04X}"


def disassemble_word(word: int, address: int = 0) -> DisassembledInstruction:
    """Disassemble a single instruction word located at address."""
    ins = decode(word)
    op = ins.opcode
    mnem = ins.mnemonic
    operands = ""
    comment = ""

    if op in (OP_ADD, OP_AND):
        if ins.imm_flag:
            operands = f"R{ins.dr}, R{ins.sr1}, #{_signed(ins.imm5)}"
        else:
            operands = f"R{ins.dr}, R{ins.sr1}, R{ins.sr2}"
    elif op == OP_NOT:
        operands = f"R{ins.dr}, R{ins.sr1}"
    elif op == OP_BR:
        nzp = ins.nzp
        if nzp == 0:
            mnem = 'NOP'
        else:
            mnem = 'BR' + ''.join(c for c, bit in (('n', 4), ('z', 2), ('p', 1)) if nzp & bit)
            operands = _target(address, ins.pc_offset9)
    elif op in (OP_LD, OP_LDI, OP_LEA, OP_ST, OP_STI):
        operands = f"R{ins.dr}, {_target(address, ins.pc_offset9)}"
    elif op in (OP_LDR, OP_STR):
        operands = f"R{ins.dr}, R{ins.base_r}, #{_signed(ins.offset6)}"
    elif op == OP_JMP:
        if ins.base_r == 7:
            mnem = 'RET'
        else:
            operands = f"R{ins.base_r}"
    elif op == OP_JSR:
        if ins.long_flag:
            operands = _target(address, ins.pc_offset11)
        else:
            mnem = 'JSRR'
            operands = f"R{ins.base_r}"
    elif op == OP_TRAP:
        operands = f"x{ins.trap_vector:02X}"
        comment = TRAP_NAMES.get(ins.trap_vector, "")
    elif op in RESERVED_OPCODES:
        mnem = '.FILL'
        operands = f"x{ins.word:04X}"
        comment = f"reserved opcode {ins.mnemonic}"

    return DisassembledInstruction(address & 0xFFFF, ins.word, mnem, operands, comment)


def disassemble(words: Iterable[int], base_addr: int = 0) -> List[DisassembledInstruction]:
    """Disassemble a run of consecutive words starting at base_addr."""
    return [disassemble_word(w, (base_addr + i) & 0xFFFF) for i, w in enumerate(words)]
