"""tday interactive controller: key dispatch, view state and the main loop."""

import logging
import sys
from dataclasses import replace
from typing import Callable, List, Optional, TextIO

from .core import (
    TextBuffer,
    selection_up,
    selection_down,
    selection_after_delete,
    clamp_selection,
)
from .models import Entry, EditView, ListView, NewView, View, MAX_ENTRIES_IN_VIEW
from .storage import Store, StoreError
from .view import draw, render_edit, render_list, render_new

log = logging.getLogger(__name__)

KEY_ENTER = 0x0A
KEY_ESC = 0x1B
KEY_BACKSPACE = 0x7F
KEY_SPACE = 0x20

ARROW_UP = ord("A")
ARROW_DOWN = ord("B")
ARROW_RIGHT = ord("C")
ARROW_LEFT = ord("D")


class TUI:
    """Three-view state machine (list, new, edit) over a Store."""

    def __init__(self, store: Store, out: TextIO = sys.stdout):
        self.store = store
        self.out = out
        self.entries: List[Entry] = []
        self.selection = 0
        self.view: View = ListView()
        self.new_buf = TextBuffer()
        self.edit_buf = TextBuffer()
        self.should_reload = True
        self.running = True

    @property
    def entries_in_view(self) -> int:
        return len(self.entries)

    def selected(self) -> Optional[Entry]:
        if not self.entries:
            return None
        return self.entries[self.selection]

    def active_buffer(self) -> Optional[TextBuffer]:
        """Buffer that text keys edit in the current view; None in the list."""
        if isinstance(self.view, NewView):
            return self.new_buf
        if isinstance(self.view, EditView):
            return self.edit_buf
        return None

    def reload(self) -> None:
        """Replace the in-memory page with a fresh load from the store."""
        try:
            entries = self.store.load_page()
        except StoreError as err:
            log.error("%s", err)
            entries = []
        self.entries = entries[:MAX_ENTRIES_IN_VIEW]
        self.selection = clamp_selection(self.selection, self.entries_in_view)
        self.should_reload = False

    def _write(self, op: Callable, *args) -> bool:
        """Run a store mutation; failures are reported and the UI carries on."""
        self.should_reload = True
        try:
            op(*args)
        except StoreError as err:
            log.error("%s", err)
            return False
        return True

    def frame(self) -> str:
        if isinstance(self.view, NewView):
            return render_new(self.new_buf)
        if isinstance(self.view, EditView):
            return render_edit(self.view.original, self.edit_buf)
        return render_list(self.entries, self.selection)

    def draw(self) -> None:
        draw(self.out, self.frame())

    def handle_key(self, data: bytes) -> None:
        """Dispatch one read of up to three bytes."""
        if not data:
            return
        ch = data[0]
        if ch == KEY_ESC:
            self.handle_escape(data)
        elif isinstance(self.view, ListView):
            self.handle_list_key(ch)
        else:
            self.handle_text_key(ch)

    def handle_escape(self, data: bytes) -> None:
        if len(data) >= 3 and data[1] == ord("["):
            self.handle_arrow(data[2])
        elif len(data) == 1 or data[1] == 0:
            self.escape()
        # ESC followed by anything else (alt-chords, unknown sequences) is dropped.

    def handle_arrow(self, code: int) -> None:
        buf = self.active_buffer()
        if code == ARROW_UP:
            if isinstance(self.view, ListView):
                self.move_up()
        elif code == ARROW_DOWN:
            if isinstance(self.view, ListView):
                self.move_down()
        elif code == ARROW_RIGHT:
            if buf is not None:
                buf.right()
        elif code == ARROW_LEFT:
            if buf is not None:
                buf.left()

    def handle_list_key(self, ch: int) -> None:
        if ch == ord("k"):
            self.move_up()
        elif ch == ord("j"):
            self.move_down()
        elif ch in (KEY_ENTER, KEY_SPACE):
            self.toggle_selected()
        elif ch == ord("n"):
            self.view = NewView()
        elif ch == ord("e"):
            self.start_edit()
        elif ch == ord("d"):
            self.delete_selected()
        elif ch == ord("x"):
            self._write(self.store.archive_completed)
        elif ch == ord("q"):
            self.quit()

    def handle_text_key(self, ch: int) -> None:
        buf = self.active_buffer()
        if ch == KEY_ENTER:
            if isinstance(self.view, NewView):
                self.save_new()
            else:
                self.save_edit()
        elif ch == KEY_BACKSPACE:
            buf.backspace()
        else:
            # Over-long input is dropped silently.
            buf.insert(ch)

    def escape(self) -> None:
        if isinstance(self.view, ListView):
            self.quit()
        elif isinstance(self.view, NewView):
            # The draft survives until it is saved.
            self.view = ListView()
        else:
            self.edit_buf.clear()
            self.view = ListView()

    def quit(self) -> None:
        self.running = False

    def move_up(self) -> None:
        self.selection = selection_up(self.selection, self.entries_in_view)

    def move_down(self) -> None:
        self.selection = selection_down(self.selection, self.entries_in_view)

    def toggle_selected(self) -> None:
        entry = self.selected()
        if entry is None:
            return
        self._write(self.store.update, replace(entry, completed=not entry.completed))

    def start_edit(self) -> None:
        entry = self.selected()
        if entry is None:
            return
        self.edit_buf.load(entry.description)
        self.view = EditView(entry_id=entry.id, original=entry.description)

    def delete_selected(self) -> None:
        entry = self.selected()
        if entry is None:
            return
        self._write(self.store.delete, entry.id)
        self.selection = selection_after_delete(self.selection)

    def save_new(self) -> None:
        if len(self.new_buf):
            self._write(self.store.insert, self.new_buf.value())
        self.new_buf.clear()
        self.view = ListView()
        self.should_reload = True

    def save_edit(self) -> None:
        if not len(self.edit_buf):
            return
        entry = next((e for e in self.entries if e.id == self.view.entry_id), None)
        if entry is not None:
            self._write(
                self.store.update, replace(entry, description=self.edit_buf.value())
            )
        self.edit_buf.clear()
        self.view = ListView()
        self.should_reload = True

    def run(self, read_key: Callable[[], bytes]) -> None:
        """Reload, draw, block for input, dispatch; until quit or end of input."""
        while self.running:
            if self.should_reload:
                self.reload()
            self.draw()
            data = read_key()
            if not data:
                break
            self.handle_key(data)
