"""
Image loader tests: big-endian words, origin placement, and the
truncation / odd-length / short-file edge cases.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from lc3vm.errors import ImageLoadError
from lc3vm.loader import load_image, parse_image
from lc3vm.mem.memory import Memory


def image(origin, *words):
    data = bytearray()
    for w in (origin,) + words:
        data += bytes([w >> 8, w & 0xFF])
    return bytes(data)


class TestParse:

    def test_big_endian(self):
        assert parse_image(image(0x3000, 0x1234, 0xF025)) == (0x3000, [0x1234, 0xF025])

    def test_origin_only(self):
        assert parse_image(b"\x30\x00") == (0x3000, [])

    def test_too_short(self):
        with pytest.raises(ImageLoadError):
            parse_image(b"\x30")
        with pytest.raises(ImageLoadError):
            parse_image(b"")

    def test_odd_trailing_byte(self, caplog):
        with caplog.at_level("WARNING", logger="lc3vm"):
            origin, words = parse_image(image(0x3000, 0xABCD) + b"\x99")
        assert words == [0xABCD]
        assert "odd byte" in caplog.text


class TestLoad:

    def test_load_file(self, tmp_path):
        path = tmp_path / "prog.obj"
        path.write_bytes(image(0x3000, 0x5020, 0x1025, 0xF025))
        mem = Memory()
        loaded = load_image(mem, path)
        assert loaded.origin == 0x3000
        assert loaded.count == 3
        assert loaded.end == 0x3002
        assert loaded.path == str(path)
        assert [mem.peek(a) for a in range(0x3000, 0x3003)] == [0x5020, 0x1025, 0xF025]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageLoadError) as info:
            load_image(Memory(), tmp_path / "nope.obj")
        assert "failed to load image" in str(info.value)
        assert info.value.path.endswith("nope.obj")

    def test_later_image_overwrites(self):
        mem = Memory()
        load_image(mem, image(0x3000, 1, 2, 3))
        load_image(mem, image(0x3001, 9))
        assert [mem.peek(a) for a in range(0x3000, 0x3003)] == [1, 9, 3]

    def test_truncated_at_top_of_memory(self, caplog):
        """Words past xFFFF are dropped, x0000 is never written"""
        mem = Memory()
        with caplog.at_level("WARNING", logger="lc3vm"):
            loaded = load_image(mem, image(0xFFFE, 1, 2, 3, 4))
        assert loaded.count == 2
        assert loaded.dropped == 2
        assert mem.peek(0xFFFE) == 1
        assert mem.peek(0xFFFF) == 2
        assert mem.peek(0x0000) == 0
        assert "dropped" in caplog.text

    def test_load_skips_device_handlers(self):
        """Loading over KBSR stores the word without polling the device"""
        mem = Memory()
        calls = []
        mem.register_io_handler(0xFE00, lambda addr: calls.append(addr) or 0)
        load_image(mem, image(0xFE00, 0x1111))
        assert calls == []
        assert mem.peek(0xFE00) == 0x1111
