"""Data models and constants for tday."""

import os
from dataclasses import dataclass
from typing import Optional, Union

DEFAULT_DIR = os.path.expanduser("~/.tday")
DEFAULT_PATH = os.path.join(DEFAULT_DIR, "tday.db")

MAX_ENTRIES_IN_VIEW = 10
MAX_STRING_LENGTH = 64
# One byte of every buffer is kept free, so descriptions top out at 63 bytes.
MAX_DESCRIPTION_BYTES = MAX_STRING_LENGTH - 1


@dataclass
class Entry:
    """A single persisted todo item."""

    id: int
    description: bytes  # raw, at most MAX_DESCRIPTION_BYTES from the UI
    completed: bool = False
    ignored: bool = False
    updated_at: Optional[int] = None  # epoch seconds, None until first update


@dataclass
class ListView:
    pass


@dataclass
class NewView:
    pass


@dataclass
class EditView:
    """Editing the entry with ``entry_id``; ``original`` is shown in the header."""

    entry_id: int
    original: bytes


View = Union[ListView, NewView, EditView]
