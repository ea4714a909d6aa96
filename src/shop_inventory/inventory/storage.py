from __future__ import annotations

import json
import os
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from ..logging import get_logger
from ..paths import find_project_root, var_dir


LOG = get_logger("inventory-storage")


DEFAULT_DB_FOLDER = "inventory"
DEFAULT_DB_FILENAME = "inventory.sqlite3"


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS slots (
  key        TEXT PRIMARY KEY,
  value      TEXT NOT NULL,           -- JSON document
  updated_at TEXT DEFAULT (datetime('now'))
);
"""


class SlotStorage:
    """SQLite-backed named slots holding whole JSON documents.

    - Places the DB under `<project-root>/var/inventory/inventory.sqlite3`
      unless an explicit `db_path` is given.
    - `save` overwrites the slot wholesale; last write wins.
    """

    def __init__(self, root_dir: Optional[str] = None, *, db_path: Optional[str] = None) -> None:
        if db_path is None:
            root = find_project_root(root_dir)
            db_folder = os.path.join(var_dir(root), DEFAULT_DB_FOLDER)
            db_path = os.path.join(db_folder, DEFAULT_DB_FILENAME)
        folder = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(folder, exist_ok=True)
        self.db_path = os.path.abspath(db_path)
        LOG.info(f"Inventory storage path: {self.db_path}")
        self._ensure_schema()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute("PRAGMA journal_mode=WAL;")
                cur.execute("PRAGMA synchronous=NORMAL;")
            except sqlite3.DatabaseError:
                # Non-fatal; continue with schema creation
                LOG.debug("Could not switch journal mode; continuing")
            cur.executescript(SCHEMA_SQL)
            conn.commit()

    def load(self, key: str) -> Optional[Any]:
        """Return the decoded slot value, or None when absent or unreadable."""
        with self.connect() as conn:
            cur = conn.cursor()
            cur.execute("SELECT value FROM slots WHERE key = ?;", (key,))
            row = cur.fetchone()
        if row is None:
            LOG.debug(f"Slot '{key}' is empty")
            return None
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError as exc:
            LOG.warning(f"Slot '{key}' holds invalid JSON ({exc}); treating as empty")
            return None

    def save(self, key: str, value: Any) -> None:
        payload = json.dumps(value, ensure_ascii=False)
        with self.connect() as conn:
            conn.execute(
                """
                INSERT INTO slots (key, value, updated_at) VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at;
                """,
                (key, payload),
            )
            conn.commit()
        LOG.debug(f"Saved slot '{key}' ({len(payload)} bytes)")

