"""
Emulator configuration.

Defaults match the standard LC-3 conventions. A JSON file can override
any of them:

    {
        "pc_start": "x3000",
        "max_instructions": 1000000,
        "trace": false,
        "strict_traps": true,
        "halt_message": "HALT\\n",
        "in_prompt": "> ",
        "breakpoints": ["x3010", "0x3020"]
    }

Addresses accept ints or hex strings with a 0x, x or $ prefix.
"""

import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import List, Optional

from .cpu.regs import PC_START
from .errors import ConfigError


def parse_int_arg(value) -> int:
    """Parse an integer that may be hex (0x..., x..., $...) or decimal."""
    if isinstance(value, bool):
        raise ValueError(f"not a number: {value!r}")
    if isinstance(value, int):
        return value
    value = str(value).strip()
    if value[:2] in ("0x", "0X"):
        return int(value[2:], 16)
    if value[:1] in ("x", "X"):
        return int(value[1:], 16)   # LC-3 assembler convention
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value)


def parse_address(value) -> int:
    addr = parse_int_arg(value)
    if not 0 <= addr <= 0xFFFF:
        raise ValueError(f"address out of range: {value!r}")
    return addr


@dataclass
class VMConfig:
    pc_start: int = PC_START
    max_instructions: Optional[int] = None
    trace: bool = False
    strict_traps: bool = False
    halt_message: str = "HALT\n"
    in_prompt: str = "> "
    breakpoints: List[int] = field(default_factory=list)

    def merged(self, **overrides) -> "VMConfig":
        """Copy with the non-None overrides applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _coerce(key: str, value):
    if key == "pc_start":
        return parse_address(value)
    if key == "max_instructions":
        if value is None:
            return None
        n = parse_int_arg(value)
        if n <= 0:
            raise ValueError("max_instructions must be positive")
        return n
    if key in ("trace", "strict_traps"):
        if not isinstance(value, bool):
            raise ValueError(f"{key} must be true or false")
        return value
    if key in ("halt_message", "in_prompt"):
        if not isinstance(value, str):
            raise ValueError(f"{key} must be a string")
        try:
            value.encode("latin-1")
        except UnicodeEncodeError:
            raise ValueError(f"{key} must be Latin-1 text")
        return value
    if key == "breakpoints":
        if not isinstance(value, list):
            raise ValueError("breakpoints must be a list")
        return [parse_address(v) for v in value]
    raise KeyError(key)


def config_from_dict(data: dict) -> VMConfig:
    known = {f.name for f in fields(VMConfig)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")
    values = {}
    for key, value in data.items():
        try:
            values[key] = _coerce(key, value)
        except ValueError as e:
            raise ConfigError(f"bad value for {key}: {e}") from e
    return VMConfig(**values)


def load_config(path) -> VMConfig:
    """Read a JSON config file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be an object")
    return config_from_dict(data)
