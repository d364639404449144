"""ANSI screen rendering for tday.

Every frame is built as one string and written with a single flush, so the
terminal never shows half a redraw.
"""

from typing import List, TextIO

from .core import TextBuffer
from .models import Entry

ESC = "\x1b"
CLEAR_SCREEN = f"{ESC}[2J"
CURSOR_HOME = f"{ESC}[H"
YELLOW = f"{ESC}[33m"
STRIKETHROUGH = f"{ESC}[9m"
RESET_FMT = f"{ESC}[0m"

TITLE = "tday"

LIST_HELP = (
    "up (k) / down (j) to move selection\n"
    "space/enter to toggle completed status\n"
    "(n)ew entry, (e)dit, (d)elete, (x) to clear completed\n"
    "escape to (q)uit\n"
)
NEW_FOOTER = "enter to save, escape to go back"
EDIT_FOOTER = "enter to save, escape to discard changes"


def move_to(row: int, col: int) -> str:
    """Absolute cursor position, 1-based."""
    return f"{ESC}[{row};{col}H"


def show(raw: bytes) -> str:
    """Decode stored bytes for the screen; the bytes themselves are never rewritten."""
    return raw.decode("utf-8", errors="replace")


def _header() -> List[str]:
    return [CLEAR_SCREEN, CURSOR_HOME, f"{TITLE}\n\n"]


def render_list(entries: List[Entry], selection: int) -> str:
    out = _header()
    for i, e in enumerate(entries):
        out.append(f"{YELLOW}> {RESET_FMT}" if i == selection else "  ")
        out.append(f"[x] {STRIKETHROUGH}" if e.completed else "[ ] ")
        out.append(f"{show(e.description)}{RESET_FMT}\n")
    if not entries:
        out.append("no entries yet\n")
    out.append("\n")
    out.append(LIST_HELP)
    return "".join(out)


def _render_prompt(header: str, footer: str, buf: TextBuffer) -> str:
    out = _header()
    out.append(f"{header}\n")
    out.append(move_to(6, 0))
    out.append(f"{footer}\n")
    out.append(move_to(4, 0))
    out.append(f"> {buf.display()}")
    # "> " occupies columns 1-2.
    out.append(move_to(4, buf.cursor + 3))
    return "".join(out)


def render_new(buf: TextBuffer) -> str:
    return _render_prompt("new task description:", NEW_FOOTER, buf)


def render_edit(original: bytes, buf: TextBuffer) -> str:
    return _render_prompt(f"description: {show(original)}", EDIT_FOOTER, buf)


def draw(out: TextIO, frame: str) -> None:
    out.write(frame)
    out.flush()
