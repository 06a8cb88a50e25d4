from __future__ import annotations

import json
import sqlite3

from domain.exceptions import RecordNotFoundError, RecordStoreError
from domain.models import UserRecord
from domain.repositories import RecordStore
from infrastructure.serialization import record_from_dict, record_to_dict


class SqliteRecordStore(RecordStore):
    """
    SQLite-backed implementation of `RecordStore`.

    Owns the `user_records` table, which keeps one JSON document per
    username. The table is created on first use.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_table()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_table(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS user_records (
                    username TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    payload TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def save(self, record: UserRecord) -> None:
        payload = json.dumps(record_to_dict(record))
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    """
                    INSERT OR REPLACE INTO user_records (username, user_id, payload)
                    VALUES (?, ?, ?)
                    """,
                    (record.username, record.id, payload),
                )
                conn.commit()
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Could not store {record.username!r}: {exc}") from exc

    def load(self, username: str) -> UserRecord:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute(
                    "SELECT payload FROM user_records WHERE username = ?",
                    (username,),
                )
                row = cur.fetchone()
        except sqlite3.Error as exc:
            raise RecordNotFoundError(f"Could not read {username!r}: {exc}") from exc
        if not row:
            raise RecordNotFoundError(f"No stored record for {username!r}")

        try:
            data = json.loads(row[0])
        except (TypeError, ValueError) as exc:
            raise RecordNotFoundError(f"Unreadable record for {username!r}: {exc}") from exc
        if not isinstance(data, dict):
            raise RecordNotFoundError(f"Unreadable record for {username!r}")
        return record_from_dict(data, expected_username=username)

    def delete(self, username: str) -> bool:
        try:
            with self._get_connection() as conn:
                cur = conn.cursor()
                cur.execute("DELETE FROM user_records WHERE username = ?", (username,))
                conn.commit()
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            raise RecordStoreError(f"Could not remove {username!r}: {exc}") from exc
