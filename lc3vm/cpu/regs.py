"""
LC-3 Virtual Machine - CPU Register Set + Condition Flags

Register model:
  R0-R7  16-bit general purpose registers
         R0 carries trap arguments/results, R7 holds return addresses
  PC     16-bit program counter (address of the NEXT instruction)
  COND   condition register, exactly one of:
           bit 2: N (negative - bit 15 of result set)
           bit 1: Z (zero - result is 0)
           bit 0: P (positive - anything else)

COND is zero at power-on (no flag set). Only ADD, AND, NOT, LD, LDI,
LDR and LEA write it, and they always replace it with a single flag.
"""

# COND flag values
FL_POS = 0x1
FL_ZRO = 0x2
FL_NEG = 0x4

PC_START = 0x3000
NUM_GPR = 8


class Registers:
    """LC-3 register file: R0-R7, PC, COND.

    Register indices come from 3-bit instruction fields, so they are
    always 0-7 and never range-checked here.
    """

    __slots__ = ('R', 'PC', 'COND', 'count')

    def __init__(self, pc_start: int = PC_START):
        self.R: list = [0] * NUM_GPR
        self.PC: int = pc_start & 0xFFFF
        self.COND: int = 0
        self.count: int = 0   # instructions executed

    # --- General registers ---

    def get(self, index: int) -> int:
        return self.R[index]

    def set(self, index: int, value: int):
        self.R[index] = value & 0xFFFF

    def update_flags(self, index: int):
        """Set COND from the value just written to R[index]."""
        value = self.R[index]
        if value == 0:
            self.COND = FL_ZRO
        elif value & 0x8000:
            self.COND = FL_NEG
        else:
            self.COND = FL_POS

    # --- COND flag access ---

    @property
    def positive(self) -> bool:
        return self.COND == FL_POS

    @property
    def zero(self) -> bool:
        return self.COND == FL_ZRO

    @property
    def negative(self) -> bool:
        return self.COND == FL_NEG

    # --- Display ---

    def cond_str(self) -> str:
        """COND as 'N', 'Z', 'P' or '-' when no flag has been set yet."""
        return {FL_NEG: 'N', FL_ZRO: 'Z', FL_POS: 'P'}.get(self.COND, '-')

    def display(self) -> str:
        """Format register state for traces and dumps."""
        gprs = ' '.join(f"R{i}={v:04X}" for i, v in enumerate(self.R))
        return f"PC={self.PC:04X} {gprs} CC={self.cond_str()}"

    def reset(self, pc_start: int = PC_START):
        """Return to power-on state."""
        self.R = [0] * NUM_GPR
        self.PC = pc_start & 0xFFFF
        self.COND = 0
        self.count = 0
