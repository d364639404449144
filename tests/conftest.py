import io

import pytest

from tday.storage import Store
from tday.tui import TUI


@pytest.fixture()
def db_path(tmp_path):
    return str(tmp_path / "tday_test.db")


@pytest.fixture()
def store(db_path):
    s = Store(db_path)
    s.open()
    yield s
    s.close()


@pytest.fixture()
def tui(store):
    t = TUI(store, io.StringIO())
    t.reload()
    return t


def press(tui, *keys):
    """Feed keys one read at a time, reloading between reads like the main loop."""
    for k in keys:
        if isinstance(k, str):
            k = k.encode()
        tui.handle_key(k)
        if tui.should_reload:
            tui.reload()


def set_completed(store, entry_id, completed=True):
    store.conn.execute(
        "UPDATE entries SET completed = ? WHERE id = ?", (int(completed), entry_id)
    )


def fetch_row(store, entry_id):
    return store.conn.execute(
        "SELECT id, description, completed, ignored, updated_at FROM entries WHERE id = ?",
        (entry_id,),
    ).fetchone()
