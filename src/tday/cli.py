"""tday command-line entry point."""

import logging
import sys
import termios

from .models import DEFAULT_PATH
from .storage import Store, StoreError
from .terminal import raw_mode, read_key
from .tui import TUI

log = logging.getLogger("tday")


class DiagnosticFormatter(logging.Formatter):
    """Formats records as ``[error] context: message``."""

    def format(self, record: logging.LogRecord) -> str:
        return f"[{record.levelname.lower()}] {record.getMessage()}"


def setup_logging(level: int = logging.WARNING) -> None:
    """Send tday diagnostics to stderr. Idempotent."""
    if log.handlers:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(DiagnosticFormatter())
    log.addHandler(handler)
    log.setLevel(level)


def main(path: str = DEFAULT_PATH) -> int:
    """Run the interactive list. Returns the process exit status."""
    setup_logging()
    fd = sys.stdin.fileno()
    store = Store(path)
    result = 0
    try:
        with raw_mode(fd):
            try:
                store.open()
                TUI(store, sys.stdout).run(lambda: read_key(fd))
            except StoreError as err:
                log.error("%s", err)
                result = 1
            finally:
                store.close()
    except termios.error as err:
        log.error("raw_mode: %s", err)
        result = 1
    finally:
        print("Quitting program...")
    return result


if __name__ == "__main__":
    sys.exit(main())
