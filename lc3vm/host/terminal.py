"""
Terminal console (stdin/stdout).

When stdin is a TTY the console switches it to non-canonical, no-echo
mode on enter so single keystrokes reach the program immediately and
GETC does not echo. The saved attributes are restored on exit, including
when the run is interrupted with Ctrl-C.

Key polling uses select() with a zero timeout (Unix only). When stdin
has no usable file descriptor (pytest capture, embedded interpreters)
the console reads through the stream object and never reports a key as
ready from poll_byte().
"""

import os
import sys
import select
import logging
from typing import Optional

from .base import HostConsole

try:
    import termios
except ImportError:  # Windows
    termios = None

log = logging.getLogger(__name__)


class TerminalConsole(HostConsole):

    def __init__(self, stdin=None, stdout=None):
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._out = getattr(self._stdout, 'buffer', None)
        self._fd: Optional[int] = None
        self._saved_attrs = None

        try:
            self._fd = self._stdin.fileno()
        except (AttributeError, OSError, ValueError):
            self._fd = None

    # --- Terminal mode ---

    def __enter__(self):
        self.enable_raw_mode()
        return self

    def enable_raw_mode(self):
        """Turn off line buffering and echo. No-op when stdin is not a TTY."""
        if termios is None or self._fd is None or not os.isatty(self._fd):
            return
        self._saved_attrs = termios.tcgetattr(self._fd)
        new_attrs = termios.tcgetattr(self._fd)
        new_attrs[3] &= ~(termios.ICANON | termios.ECHO)   # lflag
        termios.tcsetattr(self._fd, termios.TCSANOW, new_attrs)
        log.debug("terminal raw mode enabled on fd %d", self._fd)

    def restore(self):
        """Put back the terminal attributes saved by enable_raw_mode()."""
        if self._saved_attrs is not None:
            termios.tcsetattr(self._fd, termios.TCSANOW, self._saved_attrs)
            self._saved_attrs = None
            log.debug("terminal attributes restored")

    def close(self):
        self.flush()
        self.restore()

    # --- Input ---

    def read_byte(self) -> int:
        self.flush()
        if self._fd is not None:
            data = os.read(self._fd, 1)
        else:
            data = self._read_stream()
        if not data:
            raise EOFError("end of terminal input")
        return data[0]

    def _read_stream(self) -> bytes:
        stream = getattr(self._stdin, 'buffer', None)
        if stream is not None:
            return stream.read(1)
        return self._stdin.read(1).encode('latin-1')

    def poll_byte(self) -> Optional[int]:
        if self._fd is None:
            return None
        ready, _, _ = select.select([self._fd], [], [], 0)
        if not ready:
            return None
        data = os.read(self._fd, 1)
        return data[0] if data else None

    # --- Output ---

    def write(self, data: bytes):
        if self._out is not None:
            self._stdout.flush()   # keep ordering with text already printed
            self._out.write(data)
        else:
            self._stdout.write(data.decode('latin-1'))

    def flush(self):
        self._stdout.flush()
        if self._out is not None:
            self._out.flush()
