import sqlite3

import pytest

from tday import storage
from tday.models import Entry
from tday.storage import Store, StoreError

from conftest import fetch_row, set_completed


def stamp(store, entry_id, ts):
    store.conn.execute("UPDATE entries SET updated_at = ? WHERE id = ?", (ts, entry_id))


class TestInit:
    def test_fresh_database_is_at_version_1(self, store):
        assert store.user_version() == 1
        assert store.columns() == [
            "id",
            "description",
            "completed",
            "ignored",
            "updated_at",
        ]

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "tday.db"
        with Store(str(path)) as s:
            assert s.user_version() == 1
        assert path.exists()

    def test_open_twice_is_idempotent(self, db_path):
        with Store(db_path) as s:
            s.insert(b"keep me")
            cols = s.columns()
        with Store(db_path) as s:
            assert s.user_version() == 1
            assert s.columns() == cols
            assert [e.description for e in s.load_page()] == [b"keep me"]

    def test_migrates_legacy_database(self, db_path):
        conn = sqlite3.connect(db_path)
        conn.execute(storage.CREATE_TABLE_ENTRIES_SQL)
        conn.execute("INSERT INTO entries (description, completed) VALUES ('old', 1)")
        conn.commit()
        conn.close()

        with Store(db_path) as s:
            assert s.user_version() == 1
            assert "updated_at" in s.columns()
            row = fetch_row(s, 1)
            assert row[1] == b"old"
            assert row[4] is None

    def test_failed_migration_rolls_back(self, db_path):
        # Column already present but version still 0: the ALTER fails.
        conn = sqlite3.connect(db_path)
        conn.execute(
            "CREATE TABLE entries(id INTEGER PRIMARY KEY, description TEXT NOT NULL, "
            "completed INTEGER DEFAULT(0), ignored INTEGER DEFAULT(0), updated_at INTEGER)"
        )
        conn.commit()
        conn.close()

        s = Store(db_path)
        with pytest.raises(StoreError) as exc:
            s.open()
        assert exc.value.context == "migrate_table_entries_v1"
        assert "duplicate column" in str(exc.value)
        assert s.user_version() == 0
        s.close()

    def test_future_migrations_chain(self, db_path, monkeypatch):
        with Store(db_path) as s:
            assert s.user_version() == 1

        monkeypatch.setattr(
            storage,
            "MIGRATIONS",
            storage.MIGRATIONS + [("ALTER TABLE entries ADD COLUMN note TEXT;",)],
        )
        with Store(db_path) as s:
            assert s.user_version() == 2
            assert s.columns()[-1] == "note"
        with Store(db_path) as s:
            assert s.user_version() == 2

    def test_bad_statement_fails_prepare(self, db_path, monkeypatch):
        statements = dict(storage.STATEMENTS)
        statements["delete_entry"] = "DELETE FROM nope WHERE id = ?;"
        monkeypatch.setattr(storage, "STATEMENTS", statements)
        s = Store(db_path)
        with pytest.raises(StoreError) as exc:
            s.open()
        assert exc.value.context == "prepare_delete_entry_stmt"
        s.close()

    def test_second_instance_is_locked_out(self, store, db_path):
        other = Store(db_path)
        with pytest.raises(StoreError) as exc:
            other.open()
        assert exc.value.context == "sqlite3_open"
        assert "locked" in str(exc.value)
        other.close()

    def test_context_manager_closes_on_failed_open(self, store, db_path):
        other = Store(db_path)
        with pytest.raises(StoreError):
            with other:
                pass
        assert other.conn is None

    def test_close_is_idempotent(self, db_path):
        s = Store(db_path)
        s.open()
        s.close()
        s.close()
        assert s.conn is None

    def test_operations_after_close_raise(self, db_path):
        s = Store(db_path)
        s.open()
        s.close()
        with pytest.raises(StoreError):
            s.insert(b"late")


class TestOperations:
    def test_insert_then_load(self, store):
        new_id = store.insert(b"buy milk")
        page = store.load_page()
        assert page == [
            Entry(id=new_id, description=b"buy milk", completed=False, ignored=False)
        ]
        assert fetch_row(store, new_id)[4] is None

    def test_ids_increase(self, store):
        a = store.insert(b"a")
        b = store.insert(b"b")
        store.delete(a)
        c = store.insert(b"c")
        assert a < b < c

    def test_update_writes_fields_and_stamps(self, store):
        new_id = store.insert(b"draft")
        store.update(Entry(id=new_id, description=b"final", completed=True))
        row = fetch_row(store, new_id)
        assert row[1] == b"final"
        assert row[2] == 1
        assert row[3] == 0
        assert isinstance(row[4], int)

        first = row[4]
        store.update(Entry(id=new_id, description=b"final", completed=False))
        assert fetch_row(store, new_id)[4] >= first

    def test_delete(self, store):
        new_id = store.insert(b"gone")
        store.delete(new_id)
        assert fetch_row(store, new_id) is None
        assert store.load_page() == []

    def test_archive_completed(self, store):
        a = store.insert(b"a")
        b = store.insert(b"b")
        set_completed(store, a)
        store.archive_completed()

        assert [e.id for e in store.load_page()] == [b]
        row = fetch_row(store, a)
        assert row[3] == 1
        assert row[4] is not None
        assert fetch_row(store, b)[3] == 0

    def test_flags_stay_boolean(self, store):
        for i in range(4):
            store.insert(b"t%d" % i)
        store.update(Entry(id=1, description=b"t0", completed=True))
        store.archive_completed()
        store.update(Entry(id=2, description=b"t1", completed=True, ignored=True))
        rows = store.conn.execute("SELECT completed, ignored FROM entries").fetchall()
        for completed, ignored in rows:
            assert completed in (0, 1)
            assert ignored in (0, 1)

    def test_archive_leaves_archived_rows_alone(self, store):
        a = store.insert(b"a")
        set_completed(store, a)
        store.archive_completed()
        stamp(store, a, 100)
        store.archive_completed()
        assert fetch_row(store, a)[4] == 100

    def test_descriptions_are_stored_byte_for_byte(self, store):
        raw = b"caf\xe9 \xc3\xff"
        new_id = store.insert(raw)
        length = store.conn.execute(
            "SELECT length(CAST(description AS BLOB)) FROM entries WHERE id = ?",
            (new_id,),
        ).fetchone()[0]
        assert length == len(raw)
        assert store.load_page()[0].description == raw

        store.update(Entry(id=new_id, description=b"\xe9" * 63))
        assert fetch_row(store, new_id)[1] == b"\xe9" * 63


class TestPage:
    def test_limit_ten(self, store):
        for i in range(15):
            store.insert(b"task %d" % i)
        page = store.load_page()
        assert len(page) == 10
        # Untouched rows fall back to id order, newest first.
        assert page[0].description == b"task 14"
        assert page[-1].description == b"task 5"

    def test_ordering(self, store):
        ids = [store.insert(d) for d in (b"old", b"fresh", b"done", b"never")]
        old, fresh, done, never = ids
        stamp(store, old, 100)
        stamp(store, fresh, 200)
        stamp(store, done, 300)
        set_completed(store, done)

        page = store.load_page()
        assert [e.id for e in page] == [fresh, old, never, done]

    def test_ordering_property(self, store):
        for i in range(9):
            store.insert(b"e%d" % i)
        for i, ts in zip(range(1, 10), (5, None, 5, 7, None, 1, 7, 2, None)):
            stamp(store, i, ts)
        for i in (2, 4, 6):
            set_completed(store, i)

        page = store.load_page()

        def key(e):
            return (e.completed, -(e.updated_at if e.updated_at is not None else -1), -e.id)

        assert [key(e) for e in page] == sorted(key(e) for e in page)

    def test_hides_ignored(self, store):
        a = store.insert(b"visible")
        b = store.insert(b"hidden")
        store.update(Entry(id=b, description=b"hidden", ignored=True))
        page = store.load_page()
        assert [e.id for e in page] == [a]
        assert not any(e.ignored for e in page)
