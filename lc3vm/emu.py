"""
LC-3 Virtual Machine - Main Emulator Class

This is the top-level class that integrates:
  - CPU registers (cpu/regs.py)
  - 64K word memory with I/O routing (mem/memory.py)
  - Instruction decoder (cpu/decoder.py)
  - Keyboard device registers KBSR/KBDR (periph/keyboard.py)
  - TRAP service routines (traps.py)
  - A host console for keyboard input and display output (host/)

Execution model:
  1. Check breakpoints against PC
  2. Fetch the word at PC through Memory.read (device handlers apply)
  3. PC = PC + 1, before anything else happens, so every PC-relative
     operand is relative to the NEXT instruction
  4. Decode, then dispatch on the 4-bit opcode
  5. Handler updates registers, memory and COND

Termination reasons:
  - HALT:     TRAP x25
  - BREAK:    breakpoint address reached
  - TIMEOUT:  instruction budget used up
  - ILLEGAL:  reserved opcode or (strict mode) unknown trap vector
  - EOF:      console input ended while a trap was waiting for a key
"""

import logging
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from .config import VMConfig
from .cpu.decoder import (
    decode, Instruction, RESERVED_OPCODES,
    OP_BR, OP_ADD, OP_LD, OP_ST, OP_JSR, OP_AND, OP_LDR, OP_STR,
    OP_NOT, OP_LDI, OP_STI, OP_JMP, OP_LEA, OP_TRAP,
)
from .cpu.disasm import disassemble_word
from .cpu.regs import Registers
from .errors import EmulatorFault, IllegalOpcodeError
from .host.base import HostConsole
from .host.buffer import BufferConsole
from .loader import LoadedImage, load_image
from .mem.memory import Memory
from .periph.keyboard import KeyboardPeripheral
from .traps import HaltRequested, TrapDispatcher

log = logging.getLogger(__name__)


class MachineState(Enum):
    RUNNING = 'RUNNING'
    HALTED = 'HALTED'


class StopReason(Enum):
    HALT = 'HALT'
    BREAK = 'BREAK'
    TIMEOUT = 'TIMEOUT'
    ILLEGAL = 'ILLEGAL'
    EOF = 'EOF'


class LC3Emulator:
    """LC-3 Virtual Machine.

    Usage:
        con = BufferConsole()
        emu = LC3Emulator(console=con)
        emu.load_image('hello.obj')
        result = emu.run(max_instructions=100_000)
        print(con.output)   # b"Hello World!\\nHALT\\n"

    Without a console the machine gets an empty BufferConsole: output is
    captured and any blocking read ends the run with StopReason.EOF.
    """

    def __init__(self, console: HostConsole = None, config: VMConfig = None):
        self.config = config or VMConfig()
        self.console = console if console is not None else BufferConsole()

        # Core components
        self.regs = Registers(self.config.pc_start)
        self.mem = Memory()

        # Devices
        self.keyboard = KeyboardPeripheral(self.console)
        self.keyboard.register(self.mem)

        self.traps = TrapDispatcher(self.regs, self.mem, self.console, self.config)

        self.state = MachineState.RUNNING
        self.fault: Optional[EmulatorFault] = None
        self._stop_reason: Optional[StopReason] = None

        # Breakpoints: set of PC addresses that trigger BREAK
        self._breakpoints: Set[int] = set()
        for addr in self.config.breakpoints:
            self.add_breakpoint(addr)

        self._trace = self.config.trace
        self._trace_output: List[str] = []

        # Opcode dispatch table (built in _build_dispatch)
        self._dispatch = self._build_dispatch()

    @property
    def halted(self) -> bool:
        return self.state is MachineState.HALTED

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load_image(self, path_or_data, name: str = None) -> LoadedImage:
        """Load one program image. PC is not changed by loading."""
        return load_image(self.mem, path_or_data, name)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self, check_breakpoints: bool = True) -> Optional[StopReason]:
        """Execute one instruction. Returns StopReason if stopped, else None.

        Raises EmulatorFault for a reserved opcode or a rejected trap;
        the machine is HALTED before the exception leaves.
        """
        if self.halted:
            return self._stop_reason

        pc = self.regs.PC
        if check_breakpoints and pc in self._breakpoints:
            return StopReason.BREAK

        word = self.mem.read(pc)
        self.regs.PC = (pc + 1) & 0xFFFF
        self.regs.count += 1

        if self._trace:
            line = f"{disassemble_word(word, pc).format():<44s} {self.regs.display()}"
            self._trace_output.append(line)
            log.debug(line)

        try:
            return self.execute(word)
        except EmulatorFault as e:
            self._halt(StopReason.ILLEGAL)
            self.fault = e
            raise

    def execute(self, word: int) -> Optional[StopReason]:
        """Run one already-fetched word against the current state.

        No fetch and no PC increment: PC must already point past the
        instruction, as it does inside step().
        """
        inst = decode(word)
        if inst.opcode in RESERVED_OPCODES:
            raise IllegalOpcodeError(inst.opcode, self.regs.PC - 1, word)
        try:
            self._dispatch[inst.opcode](inst)
        except HaltRequested:
            return self._halt(StopReason.HALT)
        except EOFError:
            log.info("console input ended at x%04X", (self.regs.PC - 1) & 0xFFFF)
            return self._halt(StopReason.EOF)
        return None

    def _halt(self, reason: StopReason) -> StopReason:
        """Stop the machine; later step() calls report the same reason."""
        self.state = MachineState.HALTED
        self._stop_reason = reason
        return reason

    def run(self, max_instructions: int = None) -> StopReason:
        """Run until termination condition.

        Args:
            max_instructions: budget for this call; defaults to the
                config value, None means no limit

        Returns:
            StopReason indicating why execution stopped

        A breakpoint on the current PC does not fire for the first
        instruction, so calling run() again after BREAK continues.
        """
        if max_instructions is None:
            max_instructions = self.config.max_instructions

        executed = 0
        reason = None
        while reason is None:
            if max_instructions is not None and executed >= max_instructions:
                reason = StopReason.TIMEOUT
                break
            try:
                reason = self.step(check_breakpoints=executed > 0)
            except EmulatorFault as e:
                log.error("fault: %s", e)
                reason = StopReason.ILLEGAL
            executed += 1

        log.info("stopped: %s at x%04X after %d instructions",
                 reason.value, self.regs.PC, self.regs.count)
        return reason

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════

    def _build_dispatch(self) -> Dict[int, Callable]:
        return {
            # ── Operate ──
            OP_ADD:  self._op_add,
            OP_AND:  self._op_and,
            OP_NOT:  self._op_not,
            # ── Data movement ──
            OP_LD:   self._op_ld,
            OP_LDI:  self._op_ldi,
            OP_LDR:  self._op_ldr,
            OP_LEA:  self._op_lea,
            OP_ST:   self._op_st,
            OP_STI:  self._op_sti,
            OP_STR:  self._op_str,
            # ── Control ──
            OP_BR:   self._op_br,
            OP_JMP:  self._op_jmp,
            OP_JSR:  self._op_jsr,
            OP_TRAP: self._op_trap,
        }

    def _operand2(self, inst: Instruction) -> int:
        if inst.imm_flag:
            return inst.imm5
        return self.regs.get(inst.sr2)

    def _pc_rel(self, offset: int) -> int:
        return (self.regs.PC + offset) & 0xFFFF

    # ── Operate handlers ──

    def _op_add(self, inst: Instruction):
        self.regs.set(inst.dr, self.regs.get(inst.sr1) + self._operand2(inst))
        self.regs.update_flags(inst.dr)

    def _op_and(self, inst: Instruction):
        self.regs.set(inst.dr, self.regs.get(inst.sr1) & self._operand2(inst))
        self.regs.update_flags(inst.dr)

    def _op_not(self, inst: Instruction):
        self.regs.set(inst.dr, ~self.regs.get(inst.sr1))
        self.regs.update_flags(inst.dr)

    # ── Data movement handlers ──

    def _op_ld(self, inst: Instruction):
        self.regs.set(inst.dr, self.mem.read(self._pc_rel(inst.pc_offset9)))
        self.regs.update_flags(inst.dr)

    def _op_ldi(self, inst: Instruction):
        pointer = self.mem.read(self._pc_rel(inst.pc_offset9))
        self.regs.set(inst.dr, self.mem.read(pointer))
        self.regs.update_flags(inst.dr)

    def _op_ldr(self, inst: Instruction):
        addr = (self.regs.get(inst.base_r) + inst.offset6) & 0xFFFF
        self.regs.set(inst.dr, self.mem.read(addr))
        self.regs.update_flags(inst.dr)

    def _op_lea(self, inst: Instruction):
        self.regs.set(inst.dr, self._pc_rel(inst.pc_offset9))
        self.regs.update_flags(inst.dr)

    def _op_st(self, inst: Instruction):
        self.mem.write(self._pc_rel(inst.pc_offset9), self.regs.get(inst.dr))

    def _op_sti(self, inst: Instruction):
        pointer = self.mem.read(self._pc_rel(inst.pc_offset9))
        self.mem.write(pointer, self.regs.get(inst.dr))

    def _op_str(self, inst: Instruction):
        addr = (self.regs.get(inst.base_r) + inst.offset6) & 0xFFFF
        self.mem.write(addr, self.regs.get(inst.dr))

    # ── Control handlers ──

    def _op_br(self, inst: Instruction):
        if inst.nzp & self.regs.COND:
            self.regs.PC = self._pc_rel(inst.pc_offset9)

    def _op_jmp(self, inst: Instruction):
        # RET is JMP R7
        self.regs.PC = self.regs.get(inst.base_r)

    def _op_jsr(self, inst: Instruction):
        # R7 is written first: JSRR R7 jumps to the return address
        self.regs.set(7, self.regs.PC)
        if inst.long_flag:
            self.regs.PC = self._pc_rel(inst.pc_offset11)
        else:
            self.regs.PC = self.regs.get(inst.base_r)

    def _op_trap(self, inst: Instruction):
        self.traps.dispatch(inst.trap_vector, (self.regs.PC - 1) & 0xFFFF)

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        """Add a breakpoint at PC address. Execution stops when PC hits this."""
        self._breakpoints.add(addr & 0xFFFF)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr & 0xFFFF)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    @property
    def breakpoints(self) -> Set[int]:
        return set(self._breakpoints)

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record one disassembled line per executed instruction."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def reset(self):
        """Full emulator reset. Memory is cleared; images must be reloaded."""
        self.regs.reset(self.config.pc_start)
        self.mem.clear()
        self.keyboard.reset()
        self.state = MachineState.RUNNING
        self.fault = None
        self._stop_reason = None
        self._breakpoints.clear()
        self._trace_output.clear()
