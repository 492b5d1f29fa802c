"""
LC-3 Virtual Machine - Program Image Loader

Image format (the .obj files produced by the LC-3 assemblers):

    word 0      origin address
    word 1..n   program words, copied to origin, origin+1, ...

All words are big-endian. The image length is whatever the file holds;
there is no header beyond the origin. Loading never wraps around the
top of memory: words that would land past $FFFF are dropped.
"""

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

from .errors import ImageLoadError
from .mem.memory import MEM_SIZE

log = logging.getLogger(__name__)


@dataclass
class LoadedImage:
    """Where an image went and how much of it fit."""
    path: str
    origin: int
    count: int          # words placed in memory
    dropped: int = 0    # words past $FFFF that were discarded

    @property
    def end(self) -> int:
        """Last address written, or origin - 1 for an empty body."""
        return self.origin + self.count - 1


def parse_image(data: bytes, name: str = "<bytes>") -> Tuple[int, List[int]]:
    """Split raw image bytes into (origin, words).

    Raises ImageLoadError if there is not even an origin word. A trailing
    odd byte is ignored.
    """
    if len(data) < 2:
        raise ImageLoadError(name, "image shorter than one word")
    if len(data) % 2:
        log.warning("%s: ignoring trailing odd byte", name)
        data = data[:-1]
    words = list(struct.unpack(f">{len(data) // 2}H", data))
    return words[0], words[1:]


def load_image(memory, source: Union[str, Path, bytes, bytearray],
               name: str = None) -> LoadedImage:
    """Load an image file (or raw bytes) into memory.

    Args:
        memory: target Memory
        source: path to the image, or the image bytes themselves
        name: label used in messages when source is bytes

    Returns:
        LoadedImage describing the placement
    """
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source)
        name = name or "<bytes>"
    else:
        name = str(source)
        try:
            data = Path(source).read_bytes()
        except OSError as e:
            raise ImageLoadError(name, e.strerror or str(e)) from e

    origin, words = parse_image(data, name)

    room = MEM_SIZE - origin
    dropped = 0
    if len(words) > room:
        dropped = len(words) - room
        log.warning("%s: %d words past xFFFF dropped", name, dropped)
        words = words[:room]

    count = memory.load_words(words, origin)
    log.info("loaded %s: %d words at x%04X", name, count, origin)
    return LoadedImage(path=name, origin=origin, count=count, dropped=dropped)
