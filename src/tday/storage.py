"""SQLite persistence for tday entries."""

import logging
import os
import sqlite3
from typing import Dict, List, Optional, Sequence

from .models import Entry, MAX_ENTRIES_IN_VIEW

log = logging.getLogger(__name__)

CREATE_TABLE_ENTRIES_SQL = (
    "CREATE TABLE IF NOT EXISTS entries("
    "id INTEGER PRIMARY KEY, "
    "description TEXT NOT NULL, "
    "completed INTEGER DEFAULT(0), "
    "ignored INTEGER DEFAULT(0)"
    ");"
)

# MIGRATIONS[n - 1] holds the statements that take user_version from n - 1 to n.
# Append new steps; never edit a released one.
MIGRATIONS: List[Sequence[str]] = [
    ("ALTER TABLE entries ADD COLUMN updated_at INTEGER;",),
]

NOW_SQL = "CAST(strftime('%s', 'now') AS INTEGER)"

STATEMENTS: Dict[str, str] = {
    "get_entries": (
        "SELECT id, description, completed, ignored, updated_at FROM entries "
        "WHERE ignored = 0 "
        "ORDER BY completed ASC, updated_at DESC, id DESC "
        f"LIMIT {MAX_ENTRIES_IN_VIEW};"
    ),
    "insert_entry": "INSERT INTO entries (description) VALUES (CAST(? AS TEXT));",
    "update_entry": (
        "UPDATE entries "
        "SET description = CAST(? AS TEXT), completed = ?, ignored = ?, "
        f"updated_at = {NOW_SQL} "
        "WHERE id = ?;"
    ),
    "delete_entry": "DELETE FROM entries WHERE id = ?;",
    "clear_completed_entries": (
        f"UPDATE entries SET ignored = 1, updated_at = {NOW_SQL} "
        "WHERE completed = 1 AND ignored = 0;"
    ),
}


class StoreError(Exception):
    """A failed database operation, tagged with where it happened."""

    def __init__(self, context: str, cause: Exception):
        super().__init__(f"{context}: {cause}")
        self.context = context
        self.cause = cause


class Store:
    """Owns the database connection and the entry statements."""

    def __init__(self, path: str):
        self.path = path
        self.conn: Optional[sqlite3.Connection] = None
        self.statements: Dict[str, str] = {}

    def __enter__(self) -> "Store":
        try:
            self.open()
        except Exception:
            self.close()
            raise
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def open(self) -> None:
        """Open the database, create/migrate the schema and prepare statements.

        Raises StoreError on any failure; the caller is expected to close().
        """
        try:
            dirn = os.path.dirname(os.path.abspath(self.path))
            os.makedirs(dirn, exist_ok=True)
            self.conn = sqlite3.connect(self.path, timeout=0, isolation_level=None)
            # Descriptions are raw bytes end to end; TEXT comes back as bytes.
            self.conn.text_factory = bytes
            self.conn.execute("PRAGMA locking_mode = EXCLUSIVE;")
            # Take the lock now so a second instance fails here, not mid-edit.
            self.conn.execute("BEGIN EXCLUSIVE;")
            self.conn.execute("COMMIT;")
        except (OSError, sqlite3.Error) as e:
            raise StoreError("sqlite3_open", e) from e

        self._exec("create_table_entries", CREATE_TABLE_ENTRIES_SQL)
        self.migrate()
        self.prepare()

    def migrate(self) -> None:
        """Apply every migration above the stored user_version, one transaction each."""
        version = self.user_version()
        for target, steps in enumerate(MIGRATIONS, start=1):
            if version >= target:
                continue
            context = f"migrate_table_entries_v{target}"
            try:
                self.conn.execute("BEGIN;")
                for sql in steps:
                    self.conn.execute(sql)
                self.conn.execute(f"PRAGMA user_version = {int(target)};")
                self.conn.execute("COMMIT;")
            except sqlite3.Error as e:
                if self.conn.in_transaction:
                    self.conn.execute("ROLLBACK;")
                raise StoreError(context, e) from e
            log.info("migrated %s to user_version %d", self.path, target)
            version = target

    def prepare(self) -> None:
        """Compile every statement once so schema mismatches surface at startup."""
        for name, sql in STATEMENTS.items():
            try:
                self.conn.execute("EXPLAIN " + sql, (None,) * sql.count("?"))
            except sqlite3.Error as e:
                raise StoreError(f"prepare_{name}_stmt", e) from e
            self.statements[name] = sql

    def close(self) -> None:
        """Drop statements and close the connection. Safe to call repeatedly."""
        self.statements.clear()
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def user_version(self) -> int:
        try:
            row = self.conn.execute("PRAGMA user_version;").fetchone()
        except sqlite3.Error as e:
            raise StoreError("get_db_version", e) from e
        return row[0] if row else 0

    def columns(self) -> List[str]:
        rows = self.conn.execute("PRAGMA table_info(entries);").fetchall()
        return [r[1].decode() for r in rows]

    def _exec(self, context: str, sql: str) -> None:
        try:
            self.conn.execute(sql)
        except sqlite3.Error as e:
            raise StoreError(context, e) from e

    def _step(self, name: str, params: Sequence = ()) -> sqlite3.Cursor:
        if name not in self.statements:
            raise StoreError(
                f"step_{name}_stmt", sqlite3.ProgrammingError("store is not open")
            )
        try:
            return self.conn.execute(self.statements[name], tuple(params))
        except sqlite3.Error as e:
            raise StoreError(f"step_{name}_stmt", e) from e

    def load_page(self) -> List[Entry]:
        """Return the visible page: non-ignored rows, pending first, newest first."""
        cur = self._step("get_entries")
        try:
            rows = cur.fetchall()
        except sqlite3.Error as e:
            raise StoreError("step_get_entries_stmt", e) from e
        return [
            Entry(
                id=row[0],
                description=row[1],
                completed=bool(row[2]),
                ignored=bool(row[3]),
                updated_at=row[4],
            )
            for row in rows
        ]

    def insert(self, description: bytes) -> int:
        cur = self._step("insert_entry", (description,))
        return cur.lastrowid

    def update(self, entry: Entry) -> None:
        self._step(
            "update_entry",
            (entry.description, int(entry.completed), int(entry.ignored), entry.id),
        )

    def delete(self, entry_id: int) -> None:
        self._step("delete_entry", (entry_id,))

    def archive_completed(self) -> None:
        self._step("clear_completed_entries")
