"""
LC-3 Virtual Machine - Instruction Decoder

Pure bit-field extraction. Every 16-bit word decodes; whether the opcode
is reserved is decided by the execution engine, not here.

Instruction layout (bit 15 on the left):

  ADD/AND  oooo DDD SSS 0 00 TTT      register form
           oooo DDD SSS 1 iiiii       immediate form (imm5)
  NOT      1001 DDD SSS 111111
  BR       0000 n z p ppppppppp       PCoffset9
  LD/LDI/LEA/ST/STI
           oooo DDD ppppppppp         PCoffset9
  LDR/STR  oooo DDD BBB ffffff        offset6
  JMP      1100 000 BBB 000000
  JSR      0100 1 ppppppppppp         PCoffset11
  JSRR     0100 0 00 BBB 000000
  TRAP     1111 0000 vvvvvvvv         trapvect8
"""

from dataclasses import dataclass


# ──────────────────────────────────────────────
# Opcodes
# ──────────────────────────────────────────────

OP_BR   = 0x0
OP_ADD  = 0x1
OP_LD   = 0x2
OP_ST   = 0x3
OP_JSR  = 0x4
OP_AND  = 0x5
OP_LDR  = 0x6
OP_STR  = 0x7
OP_RTI  = 0x8   # unused in user mode
OP_NOT  = 0x9
OP_LDI  = 0xA
OP_STI  = 0xB
OP_JMP  = 0xC
OP_RES  = 0xD   # reserved
OP_LEA  = 0xE
OP_TRAP = 0xF

OPCODES = {
    OP_BR:   'BR',
    OP_ADD:  'ADD',
    OP_LD:   'LD',
    OP_ST:   'ST',
    OP_JSR:  'JSR',
    OP_AND:  'AND',
    OP_LDR:  'LDR',
    OP_STR:  'STR',
    OP_RTI:  'RTI',
    OP_NOT:  'NOT',
    OP_LDI:  'LDI',
    OP_STI:  'STI',
    OP_JMP:  'JMP',
    OP_RES:  'RES',
    OP_LEA:  'LEA',
    OP_TRAP: 'TRAP',
}

RESERVED_OPCODES = frozenset({OP_RTI, OP_RES})


# ──────────────────────────────────────────────
# Field extraction
# ──────────────────────────────────────────────

def sign_extend(field: int, bit_count: int) -> int:
    """Sign-extend a bit_count-wide field to a 16-bit two's complement value.

    sign_extend(0b11111, 5) == 0xFFFF   (-1)
    sign_extend(0b01111, 5) == 0x000F   (15)
    """
    field &= (1 << bit_count) - 1
    if (field >> (bit_count - 1)) & 1:
        field |= (0xFFFF << bit_count)
    return field & 0xFFFF


def opcode(word: int) -> int:
    return (word >> 12) & 0xF


def dr(word: int) -> int:
    """Bits 11-9: DR, SR (stores) or the n/z/p bits of BR."""
    return (word >> 9) & 0x7


def sr1(word: int) -> int:
    """Bits 8-6: SR1, SR of NOT, or BaseR."""
    return (word >> 6) & 0x7


def sr2(word: int) -> int:
    return word & 0x7


def imm_flag(word: int) -> bool:
    return bool((word >> 5) & 0x1)


def long_flag(word: int) -> bool:
    """Bit 11 of JSR: 1 = PCoffset11 form, 0 = JSRR (BaseR)."""
    return bool((word >> 11) & 0x1)


def imm5(word: int) -> int:
    return sign_extend(word & 0x1F, 5)


def offset6(word: int) -> int:
    return sign_extend(word & 0x3F, 6)


def pc_offset9(word: int) -> int:
    return sign_extend(word & 0x1FF, 9)


def pc_offset11(word: int) -> int:
    return sign_extend(word & 0x7FF, 11)


def trap_vector(word: int) -> int:
    return word & 0xFF


# ──────────────────────────────────────────────
# Decoded instruction record
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Instruction:
    """All operand fields of one word, extracted once.

    Fields that do not apply to the opcode still hold whatever the bits
    say; handlers only look at the ones their format uses.
    """
    word: int
    opcode: int
    dr: int
    sr1: int
    sr2: int
    imm_flag: bool
    imm5: int
    offset6: int
    pc_offset9: int
    pc_offset11: int
    long_flag: bool
    trap_vector: int

    @property
    def mnemonic(self) -> str:
        return OPCODES[self.opcode]

    @property
    def nzp(self) -> int:
        return self.dr

    @property
    def base_r(self) -> int:
        return self.sr1


def decode(word: int) -> Instruction:
    """Decode a 16-bit instruction word."""
    word &= 0xFFFF
    return Instruction(
        word=word,
        opcode=opcode(word),
        dr=dr(word),
        sr1=sr1(word),
        sr2=sr2(word),
        imm_flag=imm_flag(word),
        imm5=imm5(word),
        offset6=offset6(word),
        pc_offset9=pc_offset9(word),
        pc_offset11=pc_offset11(word),
        long_flag=long_flag(word),
        trap_vector=trap_vector(word),
    )
