"""
In-memory console.

Input is a byte queue filled with feed(); output accumulates in a
bytearray. Used by the test suite and by embedders that want to drive a
program without a terminal.

    con = BufferConsole(b"y")
    emu = LC3Emulator(console=con)
    ...
    print(con.output)      # b"Continue? yHALT\\n"
"""

from collections import deque
from typing import Optional

from .base import HostConsole


class BufferConsole(HostConsole):

    def __init__(self, input_data: bytes = b""):
        self._rx_queue: deque = deque()
        self.tx_buffer: bytearray = bytearray()
        self.feed(input_data)

    def feed(self, data: bytes):
        """Queue bytes as pending keyboard input."""
        for byte in data:
            self._rx_queue.append(byte & 0xFF)

    @property
    def pending(self) -> int:
        return len(self._rx_queue)

    def read_byte(self) -> int:
        if not self._rx_queue:
            raise EOFError("console input exhausted")
        return self._rx_queue.popleft()

    def poll_byte(self) -> Optional[int]:
        if self._rx_queue:
            return self._rx_queue.popleft()
        return None

    def write(self, data: bytes):
        self.tx_buffer.extend(data)

    @property
    def output(self) -> bytes:
        """All bytes written since construction or the last clear()."""
        return bytes(self.tx_buffer)

    def clear(self):
        self._rx_queue.clear()
        self.tx_buffer.clear()
