"""
LC-3 Virtual Machine - Exception Hierarchy

Every error raised by the package derives from LC3Error so callers can
catch the whole family at once:

  LC3Error
  ├── ImageLoadError       image file missing, unreadable or too short
  ├── ConfigError          bad configuration file or value
  └── EmulatorFault        fatal condition during execution
      ├── IllegalOpcodeError   RTI / reserved opcode fetched
      └── UnknownTrapError     TRAP vector outside the table (strict mode)
"""


class LC3Error(Exception):
    """Base class for all lc3vm errors."""


class ImageLoadError(LC3Error):
    """A program image could not be loaded."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to load image: {path} ({reason})")


class ConfigError(LC3Error):
    """Invalid configuration file or value."""


class EmulatorFault(LC3Error):
    """Fatal execution fault. The machine halts and cannot continue."""

    def __init__(self, message: str, address: int):
        self.address = address & 0xFFFF
        super().__init__(message)


class IllegalOpcodeError(EmulatorFault):
    """A reserved opcode (RTI or RES) was fetched."""

    def __init__(self, opcode: int, address: int, word: int):
        self.opcode = opcode
        self.word = word & 0xFFFF
        super().__init__(
            f"illegal opcode {opcode:#x} (word x{self.word:04X}) at x{address & 0xFFFF:04X}",
            address,
        )


class UnknownTrapError(EmulatorFault):
    """TRAP with a vector that has no system routine."""

    def __init__(self, vector: int, address: int):
        self.vector = vector
        super().__init__(
            f"unknown trap vector x{vector:02X} at x{address & 0xFFFF:04X}",
            address,
        )
