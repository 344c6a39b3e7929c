from __future__ import annotations

import os
import shutil
import sys
import termios
from typing import BinaryIO, TextIO

CLEAR_SCREEN = b"\x1b[2J"
SHOW_CURSOR = b"\x1b[?25h"


class TerminalSession:
    """Puts the terminal in unbuffered, no-echo input mode for the duration of a
    `with` block.

    Input bytes are available as soon as they're typed and reads never block. On
    exit the screen is cleared, the cursor shown again and the original terminal
    attributes restored.
    """

    def __init__(self, stdin: TextIO | None = None, stdout: BinaryIO | None = None) -> None:
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout.buffer
        self._old_settings: list | None = None

    @staticmethod
    def size() -> tuple[int, int]:
        """Returns the terminal size as (columns, rows)."""
        columns, lines = shutil.get_terminal_size()
        return columns, lines

    def __enter__(self) -> TerminalSession:
        fd = self.stdin.fileno()

        # Save the current terminal settings
        self._old_settings = termios.tcgetattr(fd)

        raw = termios.tcgetattr(fd)
        raw[0] |= termios.IGNBRK
        raw[3] &= ~(termios.ICANON | termios.ECHO)
        raw[6][termios.VMIN] = 0
        raw[6][termios.VTIME] = 0
        termios.tcsetattr(fd, termios.TCSAFLUSH, raw)
        return self

    def __exit__(self, *exc_info) -> None:
        self.write(CLEAR_SCREEN + SHOW_CURSOR)
        if self._old_settings is not None:
            # Set the terminal settings back to their original state
            termios.tcsetattr(self.stdin.fileno(), termios.TCSAFLUSH, self._old_settings)
            self._old_settings = None

    def read_byte(self) -> bytes:
        """Returns the next input byte, or b"" if nothing has been typed."""
        return os.read(self.stdin.fileno(), 1)

    def write(self, data: bytes) -> None:
        self.stdout.write(data)
        self.stdout.flush()
