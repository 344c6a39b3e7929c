from __future__ import annotations

from typing import Final, Tuple

BRAILLE_COLS: Final[int] = 2
BRAILLE_ROWS: Final[int] = 4

BRAILLE_RANGE_START: Final[int] = 0x2800

# Sampling step and vertical compression used by curve drawing
CURVE_X_STEP: Final[float] = 0.2
CURVE_Y_SCALE: Final[float] = 10

# Keys are cell-local (x, y) with y growing upward, so (0, 0) is the bottom-left dot.
coords_braille_mapping: Final[dict[tuple[int, int], int]] = {
    (0, 3): 1 << 0,  # ⠁
    (0, 2): 1 << 1,  # ⠂
    (0, 1): 1 << 2,  # ⠄
    (0, 0): 1 << 6,  # ⡀
    (1, 3): 1 << 3,  # ⠈
    (1, 2): 1 << 4,  # ⠐
    (1, 1): 1 << 5,  # ⠠
    (1, 0): 1 << 7,  # ⢀
}

braille_table_str: Final[str] = "".join(chr(BRAILLE_RANGE_START + i) for i in range(256))


def coords_to_braille(*coords: Tuple[int, int]) -> str:
    """Returns the braille character with the given cell-local dots set.

    Raises:
        KeyError: If any of the coordinates is outside the 2x4 cell.
    """
    value = 0
    for xy in coords:
        value |= coords_braille_mapping[xy]
    return braille_table_str[value]


def cell_row(y: int, height_chars: int) -> int:
    """Storage row of the cell holding pixel row y (storage row 0 is the top)."""
    return height_chars - 1 - y // BRAILLE_ROWS


def cell_index(row: int, col: int, width_chars: int) -> int:
    return row * width_chars + col


def dot_address(x: int, y: int, width_chars: int, height_chars: int) -> Tuple[int, int] | None:
    """Maps a pixel coordinate to the cell holding it and the bit of that dot.

    Args:
        x: Pixel column, 0 at the left edge.
        y: Pixel row, 0 at the bottom edge.
        width_chars: Surface width in cells.
        height_chars: Surface height in cells.

    Returns:
        A tuple of (cell index in row-major storage order, bit mask), or None if
        the pixel lies outside the surface.
    """
    if not (0 <= x < width_chars * BRAILLE_COLS and 0 <= y < height_chars * BRAILLE_ROWS):
        return None

    index = cell_index(cell_row(y, height_chars), x // BRAILLE_COLS, width_chars)
    return index, coords_braille_mapping[x % BRAILLE_COLS, y % BRAILLE_ROWS]
