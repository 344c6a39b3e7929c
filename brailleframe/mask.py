from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Iterator, Sequence, Tuple

from bitarray import bitarray

if TYPE_CHECKING:
    try:
        from PIL.Image import Image
    except ImportError:
        Image = "Image"

BMP_SIGNATURE = b"BM"
BMP_DATA_OFFSET = 0x0A
BMP_WIDTH = 0x12
BMP_HEIGHT = 0x16
BMP_BITS_PER_PIXEL = 0x1C
BMP_COMPRESSION = 0x1E
BMP_HEADER_SIZE = 0x36

WHITE = (255, 255, 255)


class BitmapFormatError(ValueError):
    pass


class RowOrder(str, Enum):
    """Which visual edge of the image row 0 of a mask belongs to."""

    TOP_DOWN = "top-down"
    BOTTOM_UP = "bottom-up"


class BitmapMask:
    """A two-level image used as a stencil when drawing onto a canvas.

    Pixels are stored row-major, one bit each: 1 is foreground (a dot is drawn),
    0 is background (the dot is cleared). `row_order` records whether row 0 is
    the top or the bottom row of the picture; canvases use it to draw the mask
    upright in their y-up coordinate system.
    """

    __slots__ = ("width", "height", "data", "row_order")

    def __init__(
        self,
        width: int,
        height: int,
        data: bitarray | None = None,
        row_order: RowOrder = RowOrder.TOP_DOWN,
    ) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"Mask dimensions must not be negative, got {width}x{height}")

        if data is None:
            data = bitarray(width * height)
            data.setall(0)
        elif len(data) != width * height:
            raise ValueError(f"Expected {width * height} pixels, got {len(data)}")

        self.width = width
        self.height = height
        self.data = data
        self.row_order = RowOrder(row_order)

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[int]],
        row_order: RowOrder = RowOrder.TOP_DOWN,
    ) -> BitmapMask:
        """Builds a mask from nested rows of 0/1 values, top row first by default."""
        height = len(rows)
        width = len(rows[0]) if rows else 0
        data = bitarray()
        for i, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(f"Row {i} has {len(row)} pixels, expected {width}")
            for value in row:
                if value not in (0, 1):
                    raise ValueError(f"Mask values must be 0 or 1, got {value!r}")
            data.extend(row)
        return cls(width, height, data, row_order)

    @classmethod
    def from_image(cls, image: "Image") -> BitmapMask:
        """Builds a mask from a Pillow image, treating every non-white pixel as foreground."""
        rgb = image.convert("RGB")
        data = bitarray(px != WHITE for px in rgb.getdata())
        return cls(rgb.width, rgb.height, data, RowOrder.TOP_DOWN)

    def __getitem__(self, row_col: Tuple[int, int]) -> int:
        row, col = row_col
        if not (0 <= row < self.height and 0 <= col < self.width):
            raise IndexError(f"Pixel ({row}, {col}) is outside the mask")
        return self.data[row * self.width + col]

    def rows(self) -> Iterator[bitarray]:
        for i in range(self.height):
            yield self.data[i * self.width : (i + 1) * self.width]

    def dots(self) -> Iterator[Tuple[int, int, int]]:
        """Yields (x offset, y offset, value) for every pixel, with y offsets growing upward."""
        top_down = self.row_order is RowOrder.TOP_DOWN
        for i, row in enumerate(self.rows()):
            dy = self.height - 1 - i if top_down else i
            for dx, value in enumerate(row):
                yield dx, dy, value

    def invert(self) -> BitmapMask:
        self.data.invert()
        return self

    def __repr__(self) -> str:
        return f"BitmapMask({self.width}, {self.height}, row_order={self.row_order.value!r})"

    def __eq__(self, other):
        if isinstance(other, BitmapMask) and (
            self.width,
            self.height,
            self.row_order,
            self.data,
        ) == (other.width, other.height, other.row_order, other.data):
            return True
        return False


def _read_le32(buf: bytes, offset: int, signed: bool = False) -> int:
    return int.from_bytes(buf[offset : offset + 4], "little", signed=signed)


def _read_le16(buf: bytes, offset: int) -> int:
    return int.from_bytes(buf[offset : offset + 2], "little")


def decode_bitmap(buf: bytes) -> BitmapMask:
    """Decodes an uncompressed 24-bit BMP into a mask.

    Rows are kept in file order, which is bottom row first for the usual positive
    height and top row first when the header stores a negative height. White
    pixels become background, everything else foreground.

    Raises:
        BitmapFormatError: If the data is not an uncompressed 24-bit BMP or is
            truncated.
    """
    if len(buf) < BMP_HEADER_SIZE or buf[:2] != BMP_SIGNATURE:
        raise BitmapFormatError("Not a BMP file")

    bits_per_pixel = _read_le16(buf, BMP_BITS_PER_PIXEL)
    if bits_per_pixel != 24:
        raise BitmapFormatError(f"Only 24-bit bitmaps are supported, got {bits_per_pixel}-bit")

    compression = _read_le32(buf, BMP_COMPRESSION)
    if compression != 0:
        raise BitmapFormatError(f"Compressed bitmaps are not supported (method {compression})")

    width = _read_le32(buf, BMP_WIDTH, signed=True)
    height = _read_le32(buf, BMP_HEIGHT, signed=True)
    data_offset = _read_le32(buf, BMP_DATA_OFFSET)

    if width <= 0 or height == 0:
        raise BitmapFormatError(f"Invalid bitmap dimensions {width}x{height}")

    row_order = RowOrder.BOTTOM_UP if height > 0 else RowOrder.TOP_DOWN
    height = abs(height)

    # Each row is padded to a multiple of 4 bytes
    stride = (width * 3 + 3) & ~3
    if data_offset + stride * (height - 1) + width * 3 > len(buf):
        raise BitmapFormatError("Bitmap pixel data is truncated")

    data = bitarray()
    for y in range(height):
        start = data_offset + y * stride
        row = buf[start : start + width * 3]
        # Pixels are stored as (blue, green, red)
        data.extend(row[i : i + 3] != b"\xff\xff\xff" for i in range(0, len(row), 3))

    return BitmapMask(width, height, data, row_order)


def load_bitmap(path: str | Path) -> BitmapMask:
    """Loads a mask from a 24-bit uncompressed BMP file."""
    return decode_bitmap(Path(path).read_bytes())


def load_mask(path: str | Path) -> BitmapMask:
    """Loads a mask from any image file, using the BMP decoder for .bmp files and
    Pillow for everything else.
    """
    path = Path(path)
    if path.suffix.lower() == ".bmp":
        return load_bitmap(path)

    try:
        from PIL.Image import open as open_image
    except ImportError as e:
        raise ImportError(
            "ImportError while trying to import Pillow."
            "\nLoading non-BMP images requires the Pillow library to be installed:"
            "\n    pip install Pillow"
        ) from e

    with open_image(path) as image:
        return BitmapMask.from_image(image)

