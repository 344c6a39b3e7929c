from __future__ import annotations

import io
import os
import shutil
import textwrap

import pytest

from brailleframe import (
    BitmapMask,
    BrailleTable,
    Canvas,
    FrameEncoder,
    RowOrder,
    Surface,
    coords_to_braille,
    dot_address,
    utf8_encode,
)
from brailleframe.encoder import FRAME_PREFIX, FRAME_SUFFIX


def lit_dots(surface: Surface) -> set[tuple[int, int]]:
    return {
        (x, y)
        for x in range(surface.width)
        for y in range(surface.height)
        if surface.get_dot(x, y)
    }


def test_coords_to_braille():
    assert coords_to_braille((0, 0)) == "⡀"
    assert coords_to_braille((0, 0), (1, 0)) == "⣀"
    assert coords_to_braille((0, 0), (1, 0), (0, 1)) == "⣄"
    assert coords_to_braille((0, 3), (1, 3)) == "⠉"
    assert coords_to_braille((0, 3), (1, 3), (0, 2), (1, 2)) == "⠛"


def test_coords_to_braille_exceptions():
    with pytest.raises(KeyError):
        coords_to_braille((0, -1))
    with pytest.raises(KeyError):
        coords_to_braille((0, 4))
    with pytest.raises(KeyError):
        coords_to_braille((2, 3))
    with pytest.raises(KeyError):
        coords_to_braille((-1, 0))
    with pytest.raises(KeyError):
        coords_to_braille((1, 0), (1, 4))


def test_dot_address():
    # Bottom-left dot lives in the first cell of the last storage row
    assert dot_address(0, 0, 80, 24) == (23 * 80, 64)
    assert dot_address(1, 0, 80, 24) == (23 * 80, 128)
    assert dot_address(0, 3, 80, 24) == (23 * 80, 1)
    assert dot_address(1, 3, 80, 24) == (23 * 80, 8)
    assert dot_address(0, 4, 80, 24) == (22 * 80, 64)
    assert dot_address(2, 0, 80, 24) == (23 * 80 + 1, 64)
    # Top-right dot lives in the last cell of the first storage row
    assert dot_address(159, 95, 80, 24) == (79, 8)


@pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (160, 0), (0, 96), (160, 96)])
def test_dot_address_out_of_range(x, y):
    assert dot_address(x, y, 80, 24) is None


@pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (-1, 5)])
def test_surface_invalid_size(width, height):
    with pytest.raises(ValueError):
        Surface(width, height)


def test_surface_size():
    surface = Surface(80, 24)
    assert (surface.width, surface.height) == (160, 96)
    assert len(surface.data) == 80 * 24
    assert not any(surface.data)


def test_set_dot_toggle_restores_bits():
    surface = Surface(3, 2)
    # Start from a pattern so neighbouring bits are both set and unset
    for x in range(surface.width):
        for y in range(surface.height):
            if (x + 2 * y) % 3 == 0:
                surface.set_dot(x, y)

    for x in range(surface.width):
        for y in range(surface.height):
            original = bytes(surface.data)
            was_set = surface.get_dot(x, y)

            assert surface.set_dot(x, y, True) is True
            assert surface.get_dot(x, y)
            changed = [i for i, (a, b) in enumerate(zip(original, surface.data)) if a != b]
            assert len(changed) <= 1

            assert surface.set_dot(x, y, False) is True
            assert not surface.get_dot(x, y)

            surface.set_dot(x, y, was_set)
            assert bytes(surface.data) == original


@pytest.mark.parametrize("x, y", [(-1, 0), (0, -1), (6, 0), (0, 8), (-0.6, 3), (100, 100)])
def test_set_dot_out_of_range_is_skipped(x, y):
    surface = Surface(3, 2)
    surface.set_dot(2, 2)
    before = bytes(surface.data)
    assert surface.set_dot(x, y) is False
    assert surface.set_dot(x, y, False) is False
    assert bytes(surface.data) == before


def test_set_dot_rounds_coordinates():
    surface = Surface(3, 2)
    surface.set_dot(0.4, 0.6)
    surface.set_dot(2.5, 4.49)
    assert lit_dots(surface) == {(0, 1), (3, 4)}


def test_get_cell():
    surface = Surface(3, 2)
    surface.set_dot(0, 0)
    surface.set_dot(5, 7)
    assert surface.get_cell(1, 0) == 64
    assert surface.get_cell(0, 2) == 8
    assert surface.get_cell(0, 0) == 0
    with pytest.raises(IndexError):
        surface.get_cell(2, 0)
    with pytest.raises(IndexError):
        surface.get_cell(0, -1)


def test_clear():
    surface = Surface(4, 3)
    for x in range(0, surface.width, 3):
        surface.set_dot(x, x % surface.height)
    assert any(surface.data)
    assert surface.clear() is surface
    assert not any(surface.data)
    assert len(surface.data) == 12


def test_copy_and_eq():
    canvas = Canvas(4, 2)
    canvas.draw_line(0, 0, 7, 7)
    other = canvas.copy()
    assert isinstance(other, Canvas)
    assert other == canvas
    other.set_dot(7, 0)
    assert other != canvas
    assert Canvas(4, 2) != Canvas(2, 4)


def test_horizontal_line():
    canvas = Canvas(20, 5)
    canvas.draw_line(0, 0, 25, 0)
    assert lit_dots(canvas) == {(x, 0) for x in range(26)}


@pytest.mark.parametrize("start_y, end_y", [(2, 9), (9, 2)])
def test_vertical_line(start_y, end_y):
    canvas = Canvas(5, 5)
    canvas.draw_line(3, start_y, 3, end_y)
    assert lit_dots(canvas) == {(3, y) for y in range(2, 10)}


@pytest.mark.parametrize(
    "start, end",
    [
        ((0, 0), (17, 5)),
        ((0, 0), (5, 17)),
        ((17, 5), (0, 0)),
        ((2, 18), (15, 1)),
        ((1, 1), (18, 18)),
        ((0, 10), (19, 9)),
    ],
)
def test_sloped_line_has_no_gaps(start, end):
    canvas = Canvas(10, 5)
    canvas.draw_line(*start, *end)
    dots = lit_dots(canvas)
    assert start in dots
    assert end in dots

    # Walk the dots from the start; every dot must be reachable through neighbours
    seen = {start}
    frontier = [start]
    while frontier:
        x, y = frontier.pop()
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                neighbour = (x + dx, y + dy)
                if neighbour in dots and neighbour not in seen:
                    seen.add(neighbour)
                    frontier.append(neighbour)
    assert seen == dots

    # One dot per step along the major axis
    major = 0 if abs(end[0] - start[0]) > abs(end[1] - start[1]) else 1
    assert len(dots) == abs(end[major] - start[major]) + 1


def test_line_single_point():
    canvas = Canvas(3, 2)
    canvas.draw_line(2, 3, 2, 3)
    assert lit_dots(canvas) == {(2, 3)}


def test_line_partially_off_canvas():
    canvas = Canvas(3, 2)
    canvas.draw_line(-10, 2, 20, 2)
    assert lit_dots(canvas) == {(x, 2) for x in range(6)}


def test_line_clear_mode():
    canvas = Canvas(5, 2)
    canvas.draw_rectangle(0, 0, 10, 8, filled=True)
    canvas.draw_line(0, 3, 9, 3, mode="clear")
    assert lit_dots(canvas) == {(x, y) for x in range(10) for y in range(8) if y != 3}


def test_invalid_mode():
    with pytest.raises(ValueError):
        Canvas(3, 2).draw_line(0, 0, 3, 3, mode="toggle")


def test_unfilled_rectangle():
    canvas = Canvas(10, 5)
    canvas.draw_rectangle(10, 10, 5, 5)
    block = {(x, y) for x in range(10, 15) for y in range(10, 15)}
    interior = {(x, y) for x in range(11, 14) for y in range(11, 14)}
    assert len(interior) == 9
    assert lit_dots(canvas) == block - interior
    assert len(lit_dots(canvas)) == 16


def test_filled_rectangle():
    canvas = Canvas(10, 5)
    canvas.draw_rectangle(3, 4, 6, 2, filled=True)
    assert lit_dots(canvas) == {(x, y) for x in range(3, 9) for y in range(4, 6)}


def test_rectangle_partially_off_canvas():
    canvas = Canvas(3, 2)
    canvas.draw_rectangle(4, 5, 10, 10)
    assert lit_dots(canvas) == {(4, 5), (5, 5), (4, 6), (4, 7)}


def test_rectangle_border_str():
    canvas = Canvas(4, 2)
    canvas.draw_rectangle(0, 0, 8, 8)
    assert (
        canvas.get_str()
        == textwrap.dedent(
            """
            ⡏⠉⠉⢹
            ⣇⣀⣀⣸
            """
        ).strip()
    )
    assert str(canvas) == canvas.get_str()


def test_curve():
    canvas = Canvas(5, 2)
    canvas.draw_curve(0, 2, 0, 0, 25)
    assert lit_dots(canvas) == {(0, 2), (1, 2), (2, 2)}


def test_curve_scale():
    canvas = Canvas(5, 2)
    canvas.draw_curve(0, 2, 0, 0, 25, y_scale=5)
    assert lit_dots(canvas) == {(0, 5), (1, 5), (2, 5)}


def test_curve_parabola():
    canvas = Canvas(10, 10)
    # y = (x - 10)^2 / 10, sampled every 0.2 from x = 0.2 up to x = 20
    canvas.draw_curve(0, 20, 1, -20, 100, y_scale=10)
    dots = lit_dots(canvas)
    assert (10, 0) in dots
    assert all(y == 0 for x, y in dots if x == 10)
    assert (0, 9) in dots
    assert max(y for _, y in dots) == 9


@pytest.mark.parametrize("kwargs", [{"x_step": 0}, {"x_step": -0.2}, {"y_scale": 0}])
def test_curve_invalid_parameters(kwargs):
    with pytest.raises(ValueError):
        Canvas(5, 2).draw_curve(0, 2, 1, 1, 1, **kwargs)


def test_draw_mask():
    canvas = Canvas(5, 3)
    mask = BitmapMask.from_rows([[1, 0], [0, 1]])
    canvas.draw_mask(mask, 5, 5)
    assert lit_dots(canvas) == {(5, 6), (6, 5)}
    assert not canvas.get_dot(5, 5)
    assert not canvas.get_dot(6, 6)


def test_draw_mask_clears_background():
    canvas = Canvas(5, 3)
    canvas.draw_rectangle(4, 4, 4, 4, filled=True)
    canvas.draw_mask(BitmapMask.from_rows([[1, 0], [0, 1]]), 5, 5)
    assert canvas.get_dot(5, 6)
    assert canvas.get_dot(6, 5)
    assert not canvas.get_dot(5, 5)
    assert not canvas.get_dot(6, 6)
    assert canvas.get_dot(4, 4)
    assert canvas.get_dot(7, 7)


def test_draw_mask_bottom_up():
    canvas = Canvas(5, 3)
    mask = BitmapMask.from_rows([[1, 0], [0, 1]], row_order=RowOrder.BOTTOM_UP)
    canvas.draw_mask(mask, 5, 5)
    assert lit_dots(canvas) == {(5, 5), (6, 6)}


def test_draw_mask_partially_off_canvas():
    canvas = Canvas(2, 1)
    canvas.draw_mask(BitmapMask.from_rows([[1, 1, 1]] * 3), 2, 2)
    assert lit_dots(canvas) == {(x, y) for x in range(2, 4) for y in range(2, 4)}


def test_utf8_encode():
    for value in range(256):
        codepoint = 0x2800 + value
        assert utf8_encode(codepoint) == chr(codepoint).encode("utf-8")
    assert utf8_encode(0x0800) == b"\xe0\xa0\x80"
    assert utf8_encode(0xFFFF) == b"\xef\xbf\xbf"


@pytest.mark.parametrize("codepoint", [0x7FF, 0x10000, -1])
def test_utf8_encode_out_of_range(codepoint):
    with pytest.raises(ValueError):
        utf8_encode(codepoint)


def test_braille_table():
    table = BrailleTable()
    assert len(table) == 256
    assert table[0] == "⠀".encode()
    assert table[255] == "⣿".encode()
    for k, lane in enumerate(table.lanes):
        assert len(lane) == 256
        assert all(lane[v] == table[v][k] for v in range(256))


def test_encode_size():
    encoder = FrameEncoder()
    frame = encoder.encode(Surface(80, 24))
    assert len(frame) == 80 * 24 * 3 + 12
    assert encoder.frame_size(Surface(80, 24)) == 80 * 24 * 3 + 12


def test_encode_cleared_surface():
    surface = Surface(7, 3)
    surface.set_dot(3, 3)
    surface.clear()
    frame = bytes(FrameEncoder().encode(surface))
    assert frame.startswith(b"\x1b[?25l\x1b[H")
    assert frame.endswith(b"\x1b[H")
    cells = frame[len(FRAME_PREFIX) : -len(FRAME_SUFFIX)]
    assert len(cells) == 7 * 3 * 3
    assert all(cells[i : i + 3] == "⠀".encode() for i in range(0, len(cells), 3))


def test_encode_matches_str():
    canvas = Canvas(6, 3)
    canvas.draw_line(0, 0, 11, 11)
    canvas.draw_rectangle(2, 1, 7, 9)
    frame = FrameEncoder().encode(canvas)
    expected = FRAME_PREFIX + canvas.get_str().replace("\n", "").encode() + FRAME_SUFFIX
    assert bytes(frame) == expected


def test_encode_reuses_buffer():
    encoder = FrameEncoder()
    canvas = Canvas(4, 2)
    first = encoder.encode(canvas).obj
    canvas.draw_line(0, 0, 7, 0)
    second = encoder.encode(canvas)
    assert second.obj is first
    assert bytes(second) == FRAME_PREFIX + "⠀⠀⠀⠀⣀⣀⣀⣀".encode() + FRAME_SUFFIX

    # A surface with a different number of cells gets a buffer of its own size
    third = encoder.encode(Canvas(5, 2))
    assert third.obj is not first
    assert len(third) == 5 * 2 * 3 + 12


def test_encoder_shares_table():
    table = BrailleTable()
    assert FrameEncoder(table).table is table


class _CountingStream(io.BytesIO):
    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    def write(self, data) -> int:
        self.writes += 1
        return super().write(data)


def test_write_single_block():
    stream = _CountingStream()
    canvas = Canvas(3, 2)
    canvas.draw_rectangle(0, 0, 6, 8)
    written = FrameEncoder().write(canvas, stream)
    assert stream.writes == 1
    assert written == 3 * 2 * 3 + 12
    assert stream.getvalue() == (
        FRAME_PREFIX + canvas.get_str().replace("\n", "").encode() + FRAME_SUFFIX
    )


def test_surface_from_terminal(monkeypatch):
    monkeypatch.setattr(shutil, "get_terminal_size", lambda: os.terminal_size((80, 24)))
    surface = Surface.from_terminal()
    assert (surface.width_chars, surface.height_chars) == (80, 24)
    assert len(FrameEncoder().encode(surface)) == 80 * 24 * 3 + 12
