"""
LC-3 Virtual Machine - TRAP Service Routines

TRAP x20-x25 are implemented natively instead of by OS code in memory.
All routines pass their argument/result in R0. R7 is NOT written by
TRAP in this machine: the routines are host-side, so there is no
return address to save.

  x20  GETC   R0 = one input byte, no echo (blocks)
  x21  OUT    write low byte of R0
  x22  PUTS   write the zero-terminated word string at R0, one char/word
  x23  IN     prompt, read one byte, echo it, R0 = byte (blocks)
  x24  PUTSP  write the zero-terminated packed string at R0,
              two chars/word (low byte first, high byte if non-zero)
  x25  HALT   write the halt notice, stop the machine

String routines read memory with peek(), so walking across a device
register never triggers a keyboard poll.
"""

import logging
from typing import Callable, Dict

from .config import VMConfig
from .errors import UnknownTrapError
from .mem.memory import MEM_SIZE

log = logging.getLogger(__name__)

TRAP_GETC  = 0x20
TRAP_OUT   = 0x21
TRAP_PUTS  = 0x22
TRAP_IN    = 0x23
TRAP_PUTSP = 0x24
TRAP_HALT  = 0x25


class HaltRequested(Exception):
    """Raised by the HALT routine; the engine turns it into HALTED."""


class TrapDispatcher:
    """Vector table of the built-in trap routines."""

    def __init__(self, regs, mem, console, config: VMConfig = None):
        self.regs = regs
        self.mem = mem
        self.console = console
        self.config = config or VMConfig()
        self._table: Dict[int, Callable] = {
            TRAP_GETC:  self._trap_getc,
            TRAP_OUT:   self._trap_out,
            TRAP_PUTS:  self._trap_puts,
            TRAP_IN:    self._trap_in,
            TRAP_PUTSP: self._trap_putsp,
            TRAP_HALT:  self._trap_halt,
        }

    def dispatch(self, vector: int, address: int):
        """Run the routine for vector. address is the TRAP's own location.

        Unknown vectors are ignored with a warning unless strict_traps is
        set, in which case they raise UnknownTrapError.
        """
        routine = self._table.get(vector)
        if routine is None:
            if self.config.strict_traps:
                raise UnknownTrapError(vector, address)
            log.warning("ignoring unknown trap vector x%02X at x%04X", vector, address)
            return
        routine()

    # ── Input ──

    def _trap_getc(self):
        self.regs.set(0, self.console.read_byte())

    def _trap_in(self):
        self.console.write(self.config.in_prompt.encode('latin-1'))
        self.console.flush()
        ch = self.console.read_byte()
        self.console.write_byte(ch)
        self.console.flush()
        self.regs.set(0, ch)

    # ── Output ──

    def _string_words(self, addr: int):
        """Yield the words of the zero-terminated string at addr.

        Stops at the terminator without reading past it, and after one
        full lap of memory if no terminator exists.
        """
        for _ in range(MEM_SIZE):
            word = self.mem.peek(addr)
            if not word:
                return
            yield word
            addr = (addr + 1) & 0xFFFF

    def _trap_out(self):
        self.console.write_byte(self.regs.get(0))
        self.console.flush()

    def _trap_puts(self):
        out = bytes(w & 0xFF for w in self._string_words(self.regs.get(0)))
        self.console.write(out)
        self.console.flush()

    def _trap_putsp(self):
        out = bytearray()
        for word in self._string_words(self.regs.get(0)):
            out.append(word & 0xFF)
            if word >> 8:
                out.append(word >> 8)
        self.console.write(bytes(out))
        self.console.flush()

    # ── Control ──

    def _trap_halt(self):
        self.console.write(self.config.halt_message.encode('latin-1'))
        self.console.flush()
        raise HaltRequested()
