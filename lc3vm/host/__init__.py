"""Host I/O backends for the emulated keyboard and display."""

from .base import HostConsole
from .buffer import BufferConsole
from .terminal import TerminalConsole
from .serial_port import SerialConsole
