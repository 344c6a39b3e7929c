from __future__ import annotations

import math
import shutil

from brailleframe.base import (
    BRAILLE_COLS,
    BRAILLE_ROWS,
    braille_table_str,
    cell_index,
    dot_address,
)


class Surface:
    """A grid of braille cells, each byte holding the eight dots of one cell.

    Cells are stored row-major with row 0 being the top row of characters, while
    dot coordinates put (0, 0) at the bottom-left corner with y growing upward.
    """

    __slots__ = ("width_chars", "height_chars", "width", "height", "data")

    def __init__(self, width_chars: int, height_chars: int) -> None:
        if width_chars < 1 or height_chars < 1:
            raise ValueError(
                f"Surface dimensions must be positive, got {width_chars}x{height_chars}"
            )

        self.width_chars = width_chars
        self.height_chars = height_chars

        self.width = width_chars * BRAILLE_COLS
        self.height = height_chars * BRAILLE_ROWS

        self.data = bytearray(width_chars * height_chars)

    @classmethod
    def from_terminal(cls) -> Surface:
        """Returns a new surface covering the whole terminal window."""
        columns, lines = shutil.get_terminal_size()
        return cls(columns, lines)

    def set_dot(self, x: float, y: float, on: bool = True) -> bool:
        """Sets or clears the dot at the given coordinates.

        Fractional coordinates are rounded half-up to the nearest dot.

        Returns:
            True if the dot was written, False if it lies outside the surface and
            was skipped.
        """
        address = dot_address(
            math.floor(x + 0.5), math.floor(y + 0.5), self.width_chars, self.height_chars
        )
        if address is None:
            return False

        index, bit = address
        if on:
            self.data[index] |= bit
        else:
            self.data[index] &= ~bit
        return True

    def get_dot(self, x: int, y: int) -> bool:
        address = dot_address(x, y, self.width_chars, self.height_chars)
        if address is None:
            return False
        index, bit = address
        return bool(self.data[index] & bit)

    def get_cell(self, row: int, col: int) -> int:
        """Returns the raw dot byte of the cell at the given storage row and column."""
        if not (0 <= row < self.height_chars and 0 <= col < self.width_chars):
            raise IndexError(f"Cell ({row}, {col}) is outside the surface")
        return self.data[cell_index(row, col, self.width_chars)]

    def clear(self) -> Surface:
        """Clears every dot on the surface."""
        self.data[:] = bytes(len(self.data))
        return self

    def get_str(self) -> str:
        w = self.width_chars
        return "\n".join(
            "".join(braille_table_str[b] for b in self.data[row * w : (row + 1) * w])
            for row in range(self.height_chars)
        )

    def copy(self) -> Surface:
        other = self.__class__(self.width_chars, self.height_chars)
        other.data[:] = self.data
        return other

    def __str__(self) -> str:
        """Return the surface as a string, joining chars and newlines to form rows."""
        return self.get_str()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.width_chars}, {self.height_chars})"

    def __eq__(self, other):
        if isinstance(other, Surface) and (
            self.width_chars,
            self.height_chars,
            self.data,
        ) == (other.width_chars, other.height_chars, other.data):
            return True
        return False
