"""
Host console interface.

The emulated machine talks to the outside world through exactly three
primitives: a blocking byte read, a non-blocking poll, and a byte write.
Every console (terminal, in-memory buffer, serial port) implements them.
"""

from typing import Optional


class HostConsole:
    """Base class for host I/O backends.

    Subclasses implement read_byte(), poll_byte() and write(). Consoles
    are context managers; __exit__ calls close() so host state (terminal
    modes, serial handles) is always restored.
    """

    def read_byte(self) -> int:
        """Block until one input byte is available and return it.

        Raises EOFError when the input is exhausted.
        """
        raise NotImplementedError

    def poll_byte(self) -> Optional[int]:
        """Return the next input byte if one is available now, else None."""
        raise NotImplementedError

    def write(self, data: bytes):
        raise NotImplementedError

    def write_byte(self, value: int):
        self.write(bytes([value & 0xFF]))

    def flush(self):
        pass

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
