"""tday - a ten-item terminal todo list."""

__version__ = "1.0.0"

from .models import Entry, DEFAULT_PATH
from .storage import Store, StoreError
from .core import TextBuffer
from .tui import TUI

__all__ = [
    "Entry",
    "DEFAULT_PATH",
    "Store",
    "StoreError",
    "TextBuffer",
    "TUI",
]
