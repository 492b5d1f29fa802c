"""
Configuration tests: number parsing, JSON loading, overrides.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json

import pytest

from lc3vm.config import (
    VMConfig, config_from_dict, load_config, parse_address, parse_int_arg,
)
from lc3vm.errors import ConfigError


class TestParseInt:

    @pytest.mark.parametrize("text, value", [
        ("0x3000", 0x3000),
        ("0X3000", 0x3000),
        ("x3000", 0x3000),
        ("$3000", 0x3000),
        ("12288", 12288),
        (" x10 ", 16),
        (42, 42),
    ])
    def test_forms(self, text, value):
        assert parse_int_arg(text) == value

    def test_rejects_bool(self):
        with pytest.raises(ValueError):
            parse_int_arg(True)

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_int_arg("zz")

    def test_address_range(self):
        assert parse_address("xFFFF") == 0xFFFF
        with pytest.raises(ValueError):
            parse_address("x10000")
        with pytest.raises(ValueError):
            parse_address(-1)


class TestVMConfig:

    def test_defaults(self):
        cfg = VMConfig()
        assert cfg.pc_start == 0x3000
        assert cfg.max_instructions is None
        assert cfg.halt_message == "HALT\n"
        assert cfg.in_prompt == "> "
        assert cfg.breakpoints == []
        assert not cfg.trace and not cfg.strict_traps

    def test_merged_skips_none(self):
        cfg = VMConfig(max_instructions=10).merged(pc_start=0x4000, max_instructions=None)
        assert cfg.pc_start == 0x4000
        assert cfg.max_instructions == 10


class TestLoadConfig:

    def test_load(self, tmp_path):
        path = tmp_path / "vm.json"
        path.write_text(json.dumps({
            "pc_start": "x4000",
            "max_instructions": 1000,
            "strict_traps": True,
            "breakpoints": ["x3010", 12289],
        }))
        cfg = load_config(path)
        assert cfg.pc_start == 0x4000
        assert cfg.max_instructions == 1000
        assert cfg.strict_traps
        assert cfg.breakpoints == [0x3010, 0x3001]

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="unknown config keys: colour"):
            config_from_dict({"colour": "red"})

    @pytest.mark.parametrize("data", [
        {"pc_start": "nope"},
        {"max_instructions": 0},
        {"trace": "yes"},
        {"halt_message": 5},
        {"breakpoints": "x3000"},
        {"halt_message": "done \u2713\n"},
        {"in_prompt": "\u25b6 "},
    ])
    def test_bad_values(self, data):
        with pytest.raises(ConfigError):
            config_from_dict(data)

    def test_bad_json(self, tmp_path):
        path = tmp_path / "vm.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="invalid JSON"):
            load_config(path)

    def test_not_an_object(self, tmp_path):
        path = tmp_path / "vm.json"
        path.write_text("[]")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="cannot read config"):
            load_config(tmp_path / "missing.json")
