from __future__ import annotations

from typing import Iterable, Iterator, Literal, Tuple

from brailleframe.base import CURVE_X_STEP, CURVE_Y_SCALE
from brailleframe.mask import BitmapMask
from brailleframe.surface import Surface


def _draw_line(
    start_x: float,
    start_y: float,
    end_x: float,
    end_y: float,
) -> Iterator[Tuple[float, float]]:
    """Yields all points on the line between the start and end coordinates.

    Shallow lines advance one unit along x per point and steep lines one unit
    along y, so consecutive points are never more than one dot apart.

    Args:
        start_x: The x coordinate the line starts at.
        start_y: The y coordinate the line starts at.
        end_x: The x coordinate the line ends at.
        end_y: The y coordinate the line ends at.

    Yields:
        The start point, the intermediate points and the end point.
    """
    x, y = start_x, start_y
    yield x, y

    vertical = start_x == end_x
    if not vertical:
        slope = (end_y - start_y) / (end_x - start_x)
        intercept = start_y - slope * start_x

    while abs(x - end_x) > 1 or abs(y - end_y) > 1:
        if vertical:
            y += 1 if y < end_y else -1
        elif abs(slope) < 1:
            x += 1 if x < end_x else -1
            y = slope * x + intercept
        else:
            y += 1 if y < end_y else -1
            x = (y - intercept) / slope
        yield x, y

    if (x, y) != (end_x, end_y):
        yield end_x, end_y


def _draw_curve(
    start_x: float,
    end_x: float,
    a: float,
    b: float,
    c: float,
    x_step: float = CURVE_X_STEP,
    y_scale: float = CURVE_Y_SCALE,
) -> Iterator[Tuple[float, int]]:
    """Yields points of y = a*x^2 + b*x + c sampled every x_step along x.

    The first sample is taken one step after start_x, and sampling continues while
    the previous sample was left of end_x. Each y value is truncated to an integer
    and then divided (again truncating) by y_scale.
    """
    if x_step <= 0:
        raise ValueError(f"x_step must be positive, got {x_step}")
    if y_scale == 0:
        raise ValueError("y_scale must not be zero")

    x = start_x
    while x < end_x:
        x += x_step
        y = int(a * x * x + b * x + c)
        yield x, int(y / y_scale)


def _draw_rectangle(
    x: int,
    y: int,
    width: int,
    height: int,
    filled: bool = False,
) -> Iterator[Tuple[int, int]]:
    if filled:
        for i in range(height):
            for j in range(width):
                yield x + j, y + i
    else:
        # Corners belong to the horizontal edges
        for i in range(width):
            yield x + i, y
            yield x + i, y + height - 1
        for i in range(1, height - 1):
            yield x, y + i
            yield x + width - 1, y + i


class Canvas(Surface):
    """A surface with drawing primitives.

    Every primitive is drawn dot by dot through `set_dot`, so anything falling
    outside the canvas is silently left out.
    """

    __slots__ = ()

    def with_changes(
        self,
        coords: Iterable[Tuple[float, float]],
        mode: Literal["add", "clear"],
    ) -> Canvas:
        """Modify the canvas by setting or clearing the dots on the coordinates given by coords."""
        if mode not in ("add", "clear"):
            raise ValueError(f"Invalid mode {mode}")

        on = mode == "add"
        for x, y in coords:
            self.set_dot(x, y, on)
        return self

    def draw_point(self, x: float, y: float, mode: Literal["add", "clear"] = "add") -> Canvas:
        return self.with_changes(((x, y),), mode)

    def draw_line(
        self,
        start_x: float,
        start_y: float,
        end_x: float,
        end_y: float,
        mode: Literal["add", "clear"] = "add",
    ) -> Canvas:
        return self.with_changes(_draw_line(start_x, start_y, end_x, end_y), mode)

    def draw_curve(
        self,
        start_x: float,
        end_x: float,
        a: float,
        b: float,
        c: float,
        x_step: float = CURVE_X_STEP,
        y_scale: float = CURVE_Y_SCALE,
        mode: Literal["add", "clear"] = "add",
    ) -> Canvas:
        """Draws the quadratic y = a*x^2 + b*x + c between start_x and end_x.

        Args:
            start_x: Where sampling starts (the first sample is one step past it).
            end_x: Where sampling stops.
            a: The quadratic coefficient.
            b: The linear coefficient.
            c: The constant term.
            x_step: The distance along x between samples.
            y_scale: The factor each y value is divided by before plotting, to fit
                large curve values into the canvas height.
            mode: Whether to add or clear the curve's dots.
        """
        return self.with_changes(
            _draw_curve(start_x, end_x, a, b, c, x_step=x_step, y_scale=y_scale),
            mode,
        )

    def draw_rectangle(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        filled: bool = False,
        mode: Literal["add", "clear"] = "add",
    ) -> Canvas:
        """Draws a width x height rectangle with its bottom-left corner at (x, y)."""
        return self.with_changes(_draw_rectangle(x, y, width, height, filled), mode)

    def draw_mask(self, mask: BitmapMask, x: int = 0, y: int = 0) -> Canvas:
        """Draws a mask with its bottom-left corner at (x, y).

        Foreground pixels set their dot and background pixels clear it. The mask's
        row order decides which of its rows ends up at the bottom.
        """
        for dx, dy, value in mask.dots():
            self.set_dot(x + dx, y + dy, bool(value))
        return self
