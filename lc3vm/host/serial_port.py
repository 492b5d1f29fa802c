"""
Serial-port console.

Attaches the machine's keyboard and display to a serial line, so an
LC-3 program can be driven from a terminal emulator, a USB-UART adapter
or another process. Any pyserial URL works:

    /dev/ttyUSB0, COM3           physical ports
    socket://localhost:7777      raw TCP
    rfc2217://host:port          telnet com-port control
    loop://                      loopback (tests)

Line settings are fixed at 8N1; only the baud rate is configurable.
"""

import logging
from typing import Optional

import serial

from .base import HostConsole

log = logging.getLogger(__name__)

DEFAULT_BAUD = 9600


class SerialConsole(HostConsole):

    def __init__(self, url: str, baudrate: int = DEFAULT_BAUD,
                 port: Optional[serial.SerialBase] = None):
        """Open url, or wrap an already-open pyserial port object."""
        self.url = url
        if port is not None:
            self._ser = port
        else:
            self._ser = serial.serial_for_url(
                url,
                baudrate=baudrate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=None,   # read() blocks
            )
        log.info("serial console open: %s @ %d baud", url, self._ser.baudrate)

    def read_byte(self) -> int:
        data = self._ser.read(1)
        if not data:
            raise EOFError(f"serial port {self.url} closed")
        return data[0]

    def poll_byte(self) -> Optional[int]:
        if self._ser.in_waiting:
            return self._ser.read(1)[0]
        return None

    def write(self, data: bytes):
        self._ser.write(data)

    def flush(self):
        self._ser.flush()

    def close(self):
        if self._ser.is_open:
            self._ser.flush()
            self._ser.close()
            log.info("serial console closed: %s", self.url)
