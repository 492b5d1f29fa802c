"""
LC-3 Virtual Machine - Keyboard Device Registers

Register map:
  $FE00  KBSR  keyboard status  (bit 15 = a character is ready)
  $FE02  KBDR  keyboard data    (last character latched)

Behavior:
  - Reading KBSR polls the host console without blocking. If a byte is
    waiting it is consumed, latched into KBDR and KBSR reads $8000;
    otherwise KBSR reads $0000. The latch happens before the read
    returns, so a program that sees bit 15 set can read KBDR next.
  - Reading KBDR returns the latched byte with no side effect.
  - Writes to either register are stored like plain memory.

Typical polling loop in an LC-3 program:
    POLL  LDI R1, KBSR_PTR   ; R1 = mem[$FE00]
          BRzp POLL          ; bit 15 clear -> keep waiting
          LDI R0, KBDR_PTR   ; R0 = mem[$FE02]
"""

from ..host.base import HostConsole

KBSR = 0xFE00
KBDR = 0xFE02

KBSR_READY = 0x8000


class KeyboardPeripheral:
    """KBSR/KBDR keyboard model backed by a host console."""

    def __init__(self, console: HostConsole):
        self.console = console
        self._mem = None

    def register(self, memory):
        """Wire the status register into the memory I/O system."""
        self._mem = memory
        memory.register_io_handler(KBSR, self._read_kbsr, None)

    def _read_kbsr(self, addr: int) -> int:
        byte = self.console.poll_byte()
        if byte is None:
            self._mem.poke(KBSR, 0)
        else:
            self._mem.poke(KBSR, KBSR_READY)
            self._mem.poke(KBDR, byte & 0xFF)
        return self._mem.peek(KBSR)

    def reset(self):
        if self._mem is not None:
            self._mem.poke(KBSR, 0)
            self._mem.poke(KBDR, 0)
