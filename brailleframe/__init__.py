from brailleframe.base import (
    BRAILLE_COLS,
    BRAILLE_RANGE_START,
    BRAILLE_ROWS,
    CURVE_X_STEP,
    CURVE_Y_SCALE,
    braille_table_str,
    coords_braille_mapping,
    coords_to_braille,
    dot_address,
)
from brailleframe.surface import Surface
from brailleframe.mask import BitmapFormatError, BitmapMask, RowOrder, load_bitmap, load_mask
from brailleframe.canvas import Canvas
from brailleframe.encoder import BrailleTable, FrameEncoder, utf8_encode
from brailleframe.terminal import TerminalSession

__all__ = (
    "BRAILLE_COLS",
    "BRAILLE_RANGE_START",
    "BRAILLE_ROWS",
    "CURVE_X_STEP",
    "CURVE_Y_SCALE",
    "BitmapFormatError",
    "BitmapMask",
    "BrailleTable",
    "Canvas",
    "FrameEncoder",
    "RowOrder",
    "Surface",
    "TerminalSession",
    "braille_table_str",
    "coords_braille_mapping",
    "coords_to_braille",
    "dot_address",
    "load_bitmap",
    "load_mask",
    "utf8_encode",
)
