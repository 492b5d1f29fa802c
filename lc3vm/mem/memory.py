"""
LC-3 Virtual Machine - 64K Word Memory with I/O Register Routing

Memory map:
  $0000-$00FF  Trap vector table
  $0100-$01FF  Interrupt vector table
  $0200-$2FFF  Operating system / supervisor space
  $3000-$FDFF  User program space (PC starts at $3000)
  $FE00-$FFFF  Device registers
                 $FE00  KBSR  keyboard status (bit 15 = ready)
                 $FE02  KBDR  keyboard data

The emulator does not enforce the regions: every address is plain RAM
unless a device has registered a handler for it. Addresses and values
are both 16 bits, so every access is in range after masking.
"""

from array import array
from typing import Optional, Callable, Dict, Iterable, List

MEM_SIZE = 0x10000


class Memory:
    """65536 x 16-bit word memory with I/O handler interception.

    Device models call register_io_handler() to own an address: reads
    and writes of that address go to the device callbacks instead of the
    backing array. peek()/poke() always bypass the handlers; devices use
    them to latch values and loaders use them to place images.
    """

    def __init__(self):
        self._mem = array('H', [0]) * MEM_SIZE

        # addr -> read_fn(addr) -> int, addr -> write_fn(addr, value)
        self._io_read_handlers: Dict[int, Callable] = {}
        self._io_write_handlers: Dict[int, Callable] = {}

        # addr -> [callback(addr, old_val, new_val, is_write)]
        self._watchpoints: Dict[int, List[Callable]] = {}

    # --- Core read/write ---

    def read(self, addr: int) -> int:
        """Read a word. Registered device handlers run before the value
        is returned, so their side effects are visible to the caller."""
        addr &= 0xFFFF
        handler = self._io_read_handlers.get(addr)
        if handler is not None:
            return handler(addr) & 0xFFFF
        return self._mem[addr]

    def write(self, addr: int, value: int):
        """Write a word. Watchpoint callbacks fire on every write."""
        addr &= 0xFFFF
        value &= 0xFFFF
        old = self._mem[addr]

        if addr in self._watchpoints:
            for cb in self._watchpoints[addr]:
                cb(addr, old, value, True)

        handler = self._io_write_handlers.get(addr)
        if handler is not None:
            handler(addr, value)
            return

        self._mem[addr] = value

    def peek(self, addr: int) -> int:
        """Raw read, no device side effects."""
        return self._mem[addr & 0xFFFF]

    def poke(self, addr: int, value: int):
        """Raw write, no device handlers or watchpoints."""
        self._mem[addr & 0xFFFF] = value & 0xFFFF

    # --- Bulk load ---

    def load_words(self, words: Iterable[int], origin: int) -> int:
        """Copy words into memory starting at origin. Returns the count.

        Bypasses handlers and watchpoints. The caller is responsible for
        keeping the block inside the address space; anything past $FFFF
        wraps to $0000.
        """
        count = 0
        for i, word in enumerate(words):
            self._mem[(origin + i) & 0xFFFF] = word & 0xFFFF
            count += 1
        return count

    def clear(self):
        self._mem = array('H', [0]) * MEM_SIZE

    # --- I/O handler registration ---

    def register_io_handler(self, addr: int,
                            read_fn: Optional[Callable] = None,
                            write_fn: Optional[Callable] = None):
        """Register read/write handlers for a device register address.

        Args:
            addr: device register address
            read_fn: Callable(addr) -> int (16-bit value)
            write_fn: Callable(addr, value) -> None
        """
        addr &= 0xFFFF
        if read_fn:
            self._io_read_handlers[addr] = read_fn
        if write_fn:
            self._io_write_handlers[addr] = write_fn

    def unregister_io_handler(self, addr: int):
        addr &= 0xFFFF
        self._io_read_handlers.pop(addr, None)
        self._io_write_handlers.pop(addr, None)

    # --- Watchpoints ---

    def add_watchpoint(self, addr: int, callback: Callable):
        """callback(addr, old_val, new_val, is_write) runs on every write
        to addr made through write()."""
        self._watchpoints.setdefault(addr & 0xFFFF, []).append(callback)

    def remove_watchpoint(self, addr: int, callback: Optional[Callable] = None):
        """Remove a watchpoint. If callback is None, removes all on that addr."""
        addr &= 0xFFFF
        if addr in self._watchpoints:
            if callback is None:
                del self._watchpoints[addr]
            else:
                self._watchpoints[addr] = [
                    cb for cb in self._watchpoints[addr] if cb != callback
                ]

    # --- Snapshots ---

    def snapshot(self, start: int = 0x0000, end: int = 0xFFFF) -> List[int]:
        """Copy of words start..end (inclusive) for later diffing."""
        return self._mem[start:end + 1].tolist()

    def diff_snapshots(self, snap_a: List[int], snap_b: List[int],
                       base_addr: int = 0x0000) -> Dict[int, tuple]:
        """Compare two snapshots, return {addr: (old, new)} for changes."""
        changes = {}
        for i in range(min(len(snap_a), len(snap_b))):
            if snap_a[i] != snap_b[i]:
                changes[base_addr + i] = (snap_a[i], snap_b[i])
        return changes

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 64) -> str:
        """Word dump, eight words per line, with the low bytes as ASCII."""
        lines = []
        for offset in range(0, length, 8):
            addr = (start + offset) & 0xFFFF
            count = min(8, length - offset)
            words = [self._mem[(addr + i) & 0xFFFF] for i in range(count)]
            hex_words = ' '.join(f'{w:04X}' for w in words)
            ascii_chars = ''.join(
                chr(w) if 0x20 <= w < 0x7F else '.' for w in words
            )
            lines.append(f'x{addr:04X}  {hex_words:<39s}  {ascii_chars}')
        return '\n'.join(lines)
