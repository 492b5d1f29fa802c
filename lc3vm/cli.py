"""
lc3vm - LC-3 Virtual Machine CLI

Usage:
    lc3vm IMAGE [IMAGE ...] [--pc x3000] [--max-instructions N] [--trace]
                            [--break ADDR] [--strict-traps] [--serial URL]
                            [--disasm] [--dump-regs] [--dump-mem START:LEN]
                            [--config FILE] [-v] [--log-file FILE]

Images are loaded in order into the same memory (later ones overwrite
earlier ones), then the machine runs from PC = x3000.

Examples:
    lc3vm 2048.obj
    lc3vm os.obj rogue.obj --trace -vv --log-file trace.log
    lc3vm hello.obj --serial socket://localhost:7777
    lc3vm hello.obj --disasm

Exit status:
    0    HALT, or console input ended
    1    an image could not be loaded
    2    usage or configuration error
    3    execution fault (reserved opcode, rejected trap)
    4    instruction limit reached
    5    stopped at a breakpoint
    130  interrupted (Ctrl-C)
"""

import argparse
import logging
import sys
from typing import List, Optional, Sequence, Tuple

import serial

from . import __version__
from .config import VMConfig, load_config, parse_address, parse_int_arg
from .cpu.disasm import disassemble
from .emu import LC3Emulator, StopReason
from .errors import ConfigError, ImageLoadError
from .host import BufferConsole, SerialConsole, TerminalConsole
from .host.base import HostConsole
from .log_setup import setup_logging, verbosity_to_level

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LOAD = 1
EXIT_USAGE = 2
EXIT_FAULT = 3
EXIT_TIMEOUT = 4
EXIT_BREAK = 5
EXIT_INTERRUPT = 130

_EXIT_CODES = {
    StopReason.HALT: EXIT_OK,
    StopReason.EOF: EXIT_OK,
    StopReason.ILLEGAL: EXIT_FAULT,
    StopReason.TIMEOUT: EXIT_TIMEOUT,
    StopReason.BREAK: EXIT_BREAK,
}


# ── argparse value types ──

def address_arg(value: str) -> int:
    try:
        return parse_address(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid address: {value!r}")


def count_arg(value: str) -> int:
    try:
        n = parse_int_arg(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if n <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")
    return n


def range_arg(value: str) -> Tuple[int, int]:
    """START:LEN, e.g. x3000:32"""
    start, sep, length = value.partition(':')
    if not sep:
        raise argparse.ArgumentTypeError(f"expected START:LEN, got {value!r}")
    return address_arg(start), count_arg(length)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lc3vm",
        description="LC-3 virtual machine",
        epilog="Addresses accept x3000, 0x3000, $3000 or decimal.",
    )
    parser.add_argument("images", nargs="+", metavar="IMAGE",
                        help="Program image(s): big-endian words, origin first")
    parser.add_argument("--config", metavar="FILE",
                        help="JSON configuration file")
    parser.add_argument("--pc", type=address_arg, default=None,
                        help="Initial PC (default: x3000)")
    parser.add_argument("--max-instructions", type=count_arg, default=None, metavar="N",
                        help="Stop after N instructions")
    parser.add_argument("--trace", action="store_true",
                        help="Log every instruction (shown with -vv or in --log-file)")
    parser.add_argument("--break", dest="breakpoints", type=address_arg,
                        action="append", default=[], metavar="ADDR",
                        help="Stop before executing ADDR (repeatable)")
    parser.add_argument("--strict-traps", action="store_true",
                        help="Treat unknown TRAP vectors as a fault")
    parser.add_argument("--serial", metavar="URL",
                        help="Use a serial port as the console (pyserial URL)")
    parser.add_argument("--baud", type=count_arg, default=9600,
                        help="Serial baud rate (default: 9600)")
    parser.add_argument("--disasm", action="store_true",
                        help="Print a disassembly of each image and exit")
    parser.add_argument("--dump-regs", action="store_true",
                        help="Print registers after the run")
    parser.add_argument("--dump-mem", type=range_arg, metavar="START:LEN",
                        help="Hex dump memory after the run")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="More logging on stderr (-v info, -vv debug)")
    parser.add_argument("--log-file", metavar="FILE",
                        help="Also write a debug log to FILE")
    parser.add_argument("--version", action="version",
                        version=f"%(prog)s {__version__}")
    return parser


def build_config(args) -> VMConfig:
    """Config file values, then command-line overrides."""
    config = load_config(args.config) if args.config else VMConfig()
    return config.merged(
        pc_start=args.pc,
        max_instructions=args.max_instructions,
        trace=True if args.trace else None,
        strict_traps=True if args.strict_traps else None,
        breakpoints=(config.breakpoints + args.breakpoints) if args.breakpoints else None,
    )


def load_all(emu: LC3Emulator, paths: Sequence[str]) -> bool:
    """Load every image; report the first failure and return False."""
    for path in paths:
        try:
            emu.load_image(path)
        except ImageLoadError as e:
            log.debug("load failed: %s", e.reason)
            print(f"failed to load image: {e.path}", file=sys.stderr)
            return False
    return True


def print_listing(paths: Sequence[str], config: VMConfig) -> int:
    """--disasm: list each image at its origin."""
    for path in paths:
        emu = LC3Emulator(console=BufferConsole(), config=config)
        try:
            image = emu.load_image(path)
        except ImageLoadError as e:
            print(f"failed to load image: {e.path}", file=sys.stderr)
            return EXIT_LOAD
        print(f"; {path}: {image.count} words at x{image.origin:04X}")
        if image.count:
            words = emu.mem.snapshot(image.origin, image.end)
            for line in disassemble(words, image.origin):
                print(line.format())
    return EXIT_OK


def run_images(paths: Sequence[str], config: VMConfig, console: HostConsole,
               dump_regs: bool = False,
               dump_mem: Optional[Tuple[int, int]] = None) -> int:
    """Load all images, run the machine once, return the exit status."""
    emu = LC3Emulator(console=console, config=config)
    if not load_all(emu, paths):
        return EXIT_LOAD

    reason = emu.run()
    console.flush()

    if reason is StopReason.ILLEGAL:
        print(f"Error: {emu.fault}", file=sys.stderr)
    elif reason is StopReason.TIMEOUT:
        print(f"Stopped: instruction limit reached at x{emu.regs.PC:04X}", file=sys.stderr)
    elif reason is StopReason.BREAK:
        print(f"Stopped: breakpoint at x{emu.regs.PC:04X}", file=sys.stderr)

    if dump_regs:
        print(emu.regs.display())
        print(f"instructions: {emu.regs.count}")
    if dump_mem is not None:
        print(emu.mem.hexdump(*dump_mem))

    return _EXIT_CODES[reason]


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(verbosity_to_level(args.verbose), args.log_file)

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.disasm:
        return print_listing(args.images, config)

    try:
        console = SerialConsole(args.serial, args.baud) if args.serial else TerminalConsole()
    except (serial.SerialException, ValueError) as e:
        print(f"Error: cannot open serial port {args.serial}: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        with console:
            return run_images(args.images, config, console,
                              dump_regs=args.dump_regs, dump_mem=args.dump_mem)
    except KeyboardInterrupt:
        print()
        return EXIT_INTERRUPT


if __name__ == "__main__":
    sys.exit(main())
