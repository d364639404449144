"""tday editing helpers (pure functions, no I/O)."""

from dataclasses import dataclass, field

from .models import MAX_STRING_LENGTH, MAX_DESCRIPTION_BYTES


@dataclass
class TextBuffer:
    """Fixed-capacity byte buffer with an insertion cursor.

    Invariant: 0 <= cursor <= size <= MAX_DESCRIPTION_BYTES.
    """

    data: bytearray = field(default_factory=lambda: bytearray(MAX_STRING_LENGTH))
    size: int = 0
    cursor: int = 0

    def insert(self, byte: int) -> bool:
        """Insert one byte at the cursor. Returns False when the buffer is full."""
        if self.size + 1 > MAX_DESCRIPTION_BYTES:
            return False
        for i in range(self.size, self.cursor, -1):
            self.data[i] = self.data[i - 1]
        self.data[self.cursor] = byte
        self.cursor += 1
        self.size += 1
        return True

    def backspace(self) -> None:
        """Delete the byte left of the cursor."""
        if self.size == 0 or self.cursor == 0:
            return
        self.cursor -= 1
        for i in range(self.cursor, self.size - 1):
            self.data[i] = self.data[i + 1]
        self.size -= 1
        self.data[self.size] = 0

    def left(self) -> None:
        self.cursor = max(0, self.cursor - 1)

    def right(self) -> None:
        self.cursor = min(self.size, self.cursor + 1)

    def clear(self) -> None:
        for i in range(len(self.data)):
            self.data[i] = 0
        self.size = 0
        self.cursor = 0

    def load(self, raw: bytes) -> None:
        """Replace contents with ``raw`` and park the cursor at the end."""
        raw = raw[:MAX_DESCRIPTION_BYTES]
        self.clear()
        self.data[: len(raw)] = raw
        self.size = len(raw)
        self.cursor = self.size

    def value(self) -> bytes:
        return bytes(self.data[: self.size])

    def display(self) -> str:
        """Contents for the screen only; undecodable bytes show as U+FFFD."""
        return self.value().decode("utf-8", errors="replace")

    def __len__(self) -> int:
        return self.size


def selection_up(selection: int, count: int) -> int:
    """Move selection up one row, wrapping to the bottom. No-op on an empty page."""
    if count <= 0:
        return 0
    selection -= 1
    if selection < 0:
        selection = count - 1
    return selection


def selection_down(selection: int, count: int) -> int:
    """Move selection down one row, wrapping to the top."""
    if count <= 0:
        return 0
    selection += 1
    if selection > count - 1:
        selection = 0
    return selection


def selection_after_delete(selection: int) -> int:
    return max(selection - 1, 0)


def clamp_selection(selection: int, count: int) -> int:
    """Pull a stale selection back onto the page."""
    return max(0, min(selection, count - 1))
