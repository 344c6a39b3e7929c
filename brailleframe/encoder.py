from __future__ import annotations

import sys
from typing import BinaryIO, Final, Tuple

from brailleframe.base import BRAILLE_RANGE_START
from brailleframe.surface import Surface

HIDE_CURSOR: Final[bytes] = b"\x1b[?25l"
CURSOR_HOME: Final[bytes] = b"\x1b[H"

FRAME_PREFIX: Final[bytes] = HIDE_CURSOR + CURSOR_HOME
FRAME_SUFFIX: Final[bytes] = CURSOR_HOME

BYTES_PER_CELL: Final[int] = 3


def utf8_encode(codepoint: int) -> bytes:
    """Encodes a code point in the range 0x0800 - 0xFFFF as three UTF-8 bytes.

    The encoding is 1110xxxx 10xxxxxx 10xxxxxx, carrying 4, 6 and 6 bits of the
    code point respectively.
    """
    if not 0x0800 <= codepoint <= 0xFFFF:
        raise ValueError(f"Code point {codepoint:#x} does not encode to three bytes")
    return bytes(
        (
            0xE0 | (codepoint >> 12),
            0x80 | ((codepoint >> 6) & 0x3F),
            0x80 | (codepoint & 0x3F),
        )
    )


class BrailleTable:
    """The encoded bytes of all 256 braille characters, indexed by dot bits.

    Besides the per-character entries, the table keeps one 256-byte translation
    table per byte position of the encoding ("lanes"), so that a whole buffer of
    dot bytes can be mapped to one byte position with `bytes.translate`.
    """

    __slots__ = ("entries", "lanes")

    def __init__(self) -> None:
        self.entries: Tuple[bytes, ...] = tuple(
            utf8_encode(BRAILLE_RANGE_START + i) for i in range(256)
        )
        self.lanes: Tuple[bytes, ...] = tuple(
            bytes(entry[k] for entry in self.entries) for k in range(BYTES_PER_CELL)
        )

    def __getitem__(self, value: int) -> bytes:
        return self.entries[value]

    def __len__(self) -> int:
        return len(self.entries)


class FrameEncoder:
    """Serializes surfaces into terminal output, reusing one buffer for every frame.

    Each frame hides the cursor, moves it home, writes every cell in storage order
    and moves the cursor home again so the next frame overwrites this one.
    """

    __slots__ = ("table", "_buffer")

    def __init__(self, table: BrailleTable | None = None) -> None:
        self.table = table if table is not None else BrailleTable()
        self._buffer: bytearray | None = None

    @staticmethod
    def frame_size(surface: Surface) -> int:
        return len(surface.data) * BYTES_PER_CELL + len(FRAME_PREFIX) + len(FRAME_SUFFIX)

    def _get_buffer(self, surface: Surface) -> bytearray:
        size = self.frame_size(surface)
        if self._buffer is None or len(self._buffer) != size:
            self._buffer = bytearray(size)
            self._buffer[: len(FRAME_PREFIX)] = FRAME_PREFIX
            self._buffer[-len(FRAME_SUFFIX) :] = FRAME_SUFFIX
        return self._buffer

    def encode(self, surface: Surface) -> memoryview:
        """Encodes the surface into the shared output buffer.

        Returns:
            A view of the encoded frame. It is only valid until the next call to
            `encode`, which overwrites the same buffer.
        """
        buf = self._get_buffer(surface)
        start = len(FRAME_PREFIX)
        end = start + len(surface.data) * BYTES_PER_CELL
        for k, lane in enumerate(self.table.lanes):
            buf[start + k : end : BYTES_PER_CELL] = surface.data.translate(lane)
        return memoryview(buf)

    def write(self, surface: Surface, stream: BinaryIO | None = None) -> int:
        """Encodes the surface and writes the frame to the stream in a single call."""
        if stream is None:
            stream = sys.stdout.buffer
        written = stream.write(self.encode(surface))
        stream.flush()
        return written
