"""
lc3vm - LC-3 Virtual Machine

A software implementation of the LC-3 teaching computer: eight 16-bit
registers, 64K words of memory, fifteen instructions, a memory-mapped
keyboard and the six standard TRAP routines.

Architecture:

    cli.py ──> loader.py ──> mem/memory.py <── periph/keyboard.py <── host/
                                  ^                                     ^
    emu.py ── fetch/decode ───────┤                                     │
       │        cpu/decoder.py    │                                     │
       │        cpu/regs.py       │                                     │
       └──> traps.py ─────────────┴─────────────────────────────────────┘

    from lc3vm import LC3Emulator, BufferConsole
    con = BufferConsole()
    emu = LC3Emulator(console=con)
    emu.load_image("hello.obj")
    emu.run()
"""

__version__ = "0.1.0"

from .config import VMConfig, load_config
from .emu import LC3Emulator, MachineState, StopReason
from .errors import (
    LC3Error, ImageLoadError, ConfigError,
    EmulatorFault, IllegalOpcodeError, UnknownTrapError,
)
from .host import HostConsole, BufferConsole, TerminalConsole, SerialConsole
from .loader import LoadedImage, load_image
