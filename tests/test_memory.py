"""
Memory tests: raw storage, device handler routing, watchpoints,
snapshots, hex dump, and the KBSR/KBDR keyboard registers.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lc3vm.mem.memory import Memory, MEM_SIZE
from lc3vm.periph.keyboard import KeyboardPeripheral, KBSR, KBDR, KBSR_READY
from lc3vm.host import BufferConsole


class TestStorage:

    def test_zero_initialized(self):
        mem = Memory()
        assert mem.read(0x0000) == 0
        assert mem.read(0xFFFF) == 0

    def test_read_write(self):
        mem = Memory()
        mem.write(0x3000, 0xBEEF)
        assert mem.read(0x3000) == 0xBEEF

    def test_address_and_value_wrap(self):
        mem = Memory()
        mem.write(0x10005, 0x1ABCD)
        assert mem.read(0x0005) == 0xABCD

    def test_load_words(self):
        mem = Memory()
        assert mem.load_words([1, 2, 3], 0x4000) == 3
        assert [mem.peek(a) for a in (0x4000, 0x4001, 0x4002)] == [1, 2, 3]

    def test_clear(self):
        mem = Memory()
        mem.poke(0x1234, 7)
        mem.clear()
        assert mem.peek(0x1234) == 0
        assert MEM_SIZE == 65536

    def test_clear_keeps_handlers(self):
        mem = Memory()
        mem.register_io_handler(0x5000, lambda addr: 0x2222)
        mem.poke(0xFFFF, 1)
        mem.clear()
        assert mem.read(0x5000) == 0x2222
        assert mem.peek(0xFFFF) == 0
        mem.write(0xFFFF, 3)
        assert mem.snapshot(0xFFFE, 0xFFFF) == [0, 3]


class TestIOHandlers:

    def test_read_handler_intercepts(self):
        mem = Memory()
        mem.poke(0x5000, 0x1111)
        mem.register_io_handler(0x5000, lambda addr: 0x2222)
        assert mem.read(0x5000) == 0x2222
        assert mem.peek(0x5000) == 0x1111

    def test_write_handler_intercepts(self):
        mem = Memory()
        seen = []
        mem.register_io_handler(0x5001, None, lambda addr, v: seen.append((addr, v)))
        mem.write(0x5001, 0x42)
        assert seen == [(0x5001, 0x42)]
        assert mem.peek(0x5001) == 0

    def test_unregister(self):
        mem = Memory()
        mem.register_io_handler(0x5000, lambda addr: 0x2222)
        mem.unregister_io_handler(0x5000)
        assert mem.read(0x5000) == 0


class TestWatchpoints:

    def test_watchpoint_fires_on_write(self):
        mem = Memory()
        hits = []
        mem.add_watchpoint(0x3100, lambda *a: hits.append(a))
        mem.write(0x3100, 5)
        mem.write(0x3100, 6)
        assert hits == [(0x3100, 0, 5, True), (0x3100, 5, 6, True)]

    def test_poke_bypasses_watchpoint(self):
        mem = Memory()
        hits = []
        mem.add_watchpoint(0x3100, lambda *a: hits.append(a))
        mem.poke(0x3100, 5)
        assert hits == []

    def test_remove_watchpoint(self):
        mem = Memory()
        hits = []
        cb = lambda *a: hits.append(a)
        mem.add_watchpoint(0x3100, cb)
        mem.remove_watchpoint(0x3100, cb)
        mem.write(0x3100, 1)
        assert hits == []


class TestSnapshots:

    def test_diff(self):
        mem = Memory()
        before = mem.snapshot(0x3000, 0x300F)
        mem.write(0x3004, 9)
        after = mem.snapshot(0x3000, 0x300F)
        assert len(before) == 16
        assert mem.diff_snapshots(before, after, 0x3000) == {0x3004: (0, 9)}

    def test_hexdump(self):
        mem = Memory()
        mem.load_words([0x48, 0x69, 0], 0x3000)
        dump = mem.hexdump(0x3000, 8)
        assert dump.startswith("x3000  0048 0069 0000")
        assert dump.endswith("Hi......")

    def test_hexdump_line_count(self):
        assert len(Memory().hexdump(0x3000, 20).splitlines()) == 3


class TestKeyboard:

    def _wired(self, data=b""):
        mem = Memory()
        con = BufferConsole(data)
        kbd = KeyboardPeripheral(con)
        kbd.register(mem)
        return mem, con, kbd

    def test_kbsr_idle(self):
        mem, con, kbd = self._wired()
        assert mem.read(KBSR) == 0

    def test_kbsr_latches_key(self):
        """Reading KBSR with a key pending sets bit 15 and latches KBDR"""
        mem, con, kbd = self._wired(b"a")
        assert mem.read(KBSR) == KBSR_READY
        assert mem.read(KBDR) == ord('a')
        assert con.pending == 0

    def test_kbdr_read_has_no_side_effect(self):
        mem, con, kbd = self._wired(b"a")
        assert mem.read(KBDR) == 0
        assert con.pending == 1

    def test_kbsr_clears_after_consume(self):
        mem, con, kbd = self._wired(b"a")
        mem.read(KBSR)
        assert mem.read(KBSR) == 0
        assert mem.read(KBDR) == ord('a')

    def test_peek_does_not_poll(self):
        mem, con, kbd = self._wired(b"a")
        assert mem.peek(KBSR) == 0
        assert con.pending == 1

    def test_reset(self):
        mem, con, kbd = self._wired(b"a")
        mem.read(KBSR)
        kbd.reset()
        assert mem.peek(KBSR) == 0
        assert mem.peek(KBDR) == 0
