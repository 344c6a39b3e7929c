import argparse
import asyncio
import sys
import textwrap
from functools import partial
from pathlib import Path

from asynkets import PeriodicPulse, async_getch

from brailleframe.base import BRAILLE_COLS, BRAILLE_ROWS, CURVE_Y_SCALE
from brailleframe.canvas import Canvas
from brailleframe.encoder import FrameEncoder
from brailleframe.mask import BitmapMask, load_mask
from brailleframe.terminal import TerminalSession


def display_image() -> None:
    parser = argparse.ArgumentParser(
        prog="brailleframe",
        description="Display an image as braille text.",
        usage=textwrap.dedent(
            """
            Convert an image to a braille dot mask, writing it to the terminal or to a file.
            Every pixel that isn't pure white becomes a dot. By default, the canvas covers
            the whole terminal; a specific size in characters can be given with --size.

              Examples:

                Display an image in the terminal:
                $ brailleframe input.bmp

                # Save the braille text to a file:
                $ brailleframe input.png -o output.txt

                # Draw the image on a 40x10 character canvas, inverted:
                $ brailleframe input.png -s 40 10 -i
            """.strip()
        ),
        add_help=True,
    )
    parser.add_argument(
        "input",
        type=Path,
        help="The input image. BMP files must be uncompressed 24-bit bitmaps.",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        type=Path,
        help="Output text file. If not specified, output will be written to stdout.",
    )
    parser.add_argument(
        "-s",
        "--size",
        type=int,
        nargs=2,
        default=None,
        help="size of the canvas in characters (columns rows)",
    )
    parser.add_argument(
        "-i",
        "--invert",
        action="store_true",
        default=False,
        help="Draw the white parts of the image instead of the dark ones.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Output logs verbosely",
    )

    args = parser.parse_args()
    log = partial(print, file=sys.stderr) if args.verbose else lambda message: None

    log(f"Loading image {args.input}")
    try:
        mask = load_mask(args.input)
    except (OSError, ValueError) as e:
        print(f"Unable to load image '{args.input}': {e}", file=sys.stderr)
        sys.exit(1)

    if args.invert:
        mask.invert()

    columns, rows = args.size if args.size else TerminalSession.size()
    log(f"Drawing {mask.width}x{mask.height} mask on a {columns}x{rows} character canvas")
    canvas = Canvas(columns, rows)
    # Keep the top of the image at the top of the canvas
    canvas.draw_mask(mask, 0, canvas.height - mask.height)
    result_text = canvas.get_str()

    if (output_file := args.output) is not None:
        log(f"Writing output to {output_file}")
        with output_file.open("w", encoding="utf-8") as f:
            f.write(result_text + "\n")
    else:
        sys.stdout.write(result_text + "\n")


def draw_demo_frame(
    canvas: Canvas,
    a: float,
    mask: BitmapMask | None = None,
    curve_scale: float = CURVE_Y_SCALE,
) -> Canvas:
    """Draws one frame of the demo scene: two mirrored parabolas, an optional bitmap,
    three squares and two lines.
    """
    canvas.clear()
    canvas.draw_curve(0, 80, a, 10, 87, y_scale=curve_scale)
    canvas.draw_curve(0, 80, -a, 10, 1000, y_scale=curve_scale)
    if mask is not None:
        canvas.draw_mask(mask, 85, 0)
    canvas.draw_rectangle(200, 100, 20, 20, filled=True)
    canvas.draw_rectangle(250, 50, 20, 20, filled=True)
    canvas.draw_rectangle(300, 10, 20, 20, filled=True)
    canvas.draw_line(200, 150, 280, 150)
    canvas.draw_line(200, 150, 280, 100)
    return canvas


async def capture_keys(exit_event: asyncio.Event) -> None:
    """Sets the exit event when q or Ctrl-C is pressed."""
    try:
        async for ch in async_getch():
            if ch.lower().strip() in (b"q", b"\x03"):
                break
    except asyncio.CancelledError:
        pass
    finally:
        exit_event.set()


async def animate(
    canvas: Canvas,
    encoder: FrameEncoder,
    session: TerminalSession,
    fps: float,
    mask: BitmapMask | None = None,
    curve_scale: float = CURVE_Y_SCALE,
) -> int:
    """Redraws and writes the demo scene at the given frame rate until a quit key is
    pressed. Returns the number of frames shown.
    """
    exit_event = asyncio.Event()
    capture_keys_task = asyncio.create_task(capture_keys(exit_event))
    periodic_pulse = PeriodicPulse(1 / fps)

    a = 0.1
    delta = 0.01
    frames = 0
    try:
        while not exit_event.is_set():
            await periodic_pulse
            draw_demo_frame(canvas, a, mask, curve_scale)
            session.write(encoder.encode(canvas))
            frames += 1

            a += delta
            if a > 0.5 or a < -0.5:
                delta = -delta
    finally:
        periodic_pulse.close()
        capture_keys_task.cancel()
    return frames


def run_demo() -> None:
    parser = argparse.ArgumentParser(
        prog="brailleframe-demo",
        description=(
            "Animate curves, rectangles, lines and a bitmap with braille dots. Press q to quit."
        ),
    )
    parser.add_argument(
        "-b",
        "--bitmap",
        type=Path,
        default=None,
        help="Image to draw next to the curves (24-bit BMP, or any format Pillow reads)",
    )
    parser.add_argument(
        "-r",
        "--fps",
        type=float,
        default=50,
        help="Frames per second",
    )
    parser.add_argument(
        "--curve-scale",
        type=float,
        default=CURVE_Y_SCALE,
        help="Factor curve values are divided by before plotting",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Output logs verbosely",
    )

    args = parser.parse_args()
    log = partial(print, file=sys.stderr) if args.verbose else lambda message: None

    if args.fps <= 0:
        parser.error("--fps must be positive")
    if args.curve_scale == 0:
        parser.error("--curve-scale must not be zero")

    mask = None
    if args.bitmap is not None:
        log(f"Loading bitmap {args.bitmap}")
        try:
            mask = load_mask(args.bitmap)
        except (OSError, ValueError) as e:
            print(f"Unable to load bitmap '{args.bitmap}': {e}", file=sys.stderr)
            sys.exit(1)

    encoder = FrameEncoder()
    with TerminalSession() as session:
        columns, rows = session.size()
        canvas = Canvas(columns, rows)
        log(
            f"Canvas is {columns}x{rows} characters, "
            f"{columns * BRAILLE_COLS}x{rows * BRAILLE_ROWS} dots"
        )
        try:
            frames = asyncio.run(
                animate(canvas, encoder, session, args.fps, mask, args.curve_scale)
            )
        except KeyboardInterrupt:
            frames = None

    if frames is not None:
        log(f"Showed {frames} frames")


if __name__ == "__main__":
    run_demo()
