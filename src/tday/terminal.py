"""Raw-mode terminal handling for tday."""

import os
import termios
from contextlib import contextmanager
from typing import Iterator, List

# One read picks up a plain byte or a whole ``ESC [ X`` arrow sequence.
READ_SIZE = 3


def enter_raw(fd: int) -> List:
    """Disable canonical mode and echo on ``fd``; return the previous attributes."""
    old = termios.tcgetattr(fd)
    new = termios.tcgetattr(fd)
    new[3] &= ~(termios.ICANON | termios.ECHO)
    new[6][termios.VMIN] = 1
    new[6][termios.VTIME] = 0
    termios.tcsetattr(fd, termios.TCSANOW, new)
    return old


def restore(fd: int, old: List) -> None:
    termios.tcsetattr(fd, termios.TCSANOW, old)


@contextmanager
def raw_mode(fd: int) -> Iterator[List]:
    old = enter_raw(fd)
    try:
        yield old
    finally:
        restore(fd, old)


def read_key(fd: int) -> bytes:
    """Block until input arrives. Returns b"" at end of file."""
    return os.read(fd, READ_SIZE)
