import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from textsaver.errors import StorageError

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10


def connect_sqlite(path: Union[str, Path]) -> sqlite3.Connection:
    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    return conn


def table_names(conn: sqlite3.Connection) -> List[str]:
    rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    return [str(r["name"]) for r in rows]


def table_info(conn: sqlite3.Connection, table: str) -> List[Dict[str, str]]:
    if table not in set(table_names(conn)):
        return []
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return [{"name": str(r["name"]), "type": str(r["type"])} for r in rows]


def add_selected_words_column(conn: sqlite3.Connection) -> bool:
    """
    Add `suggests.selected_words` for databases created before it existed.

    Returns True if the column was added, False if it was already there.
    Any other sqlite error propagates.
    """
    try:
        conn.execute("ALTER TABLE suggests ADD COLUMN selected_words TEXT")
    except sqlite3.OperationalError as exc:
        if "duplicate column name" in str(exc).lower():
            return False
        raise
    conn.commit()
    return True


class Store:
    """
    Owns the one SQLite connection shared by every request thread.

    Writes and reads are serialized on an internal lock. Built once at
    startup and closed at shutdown by whoever created it.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()
        try:
            self._conn: Optional[sqlite3.Connection] = connect_sqlite(self.path)
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to open database at {self.path}: {exc}") from exc

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Database connection is closed")
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def init_schema(self) -> None:
        with self._lock:
            conn = self._connection()
            try:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS asks (
                      id INTEGER PRIMARY KEY AUTOINCREMENT,
                      user_prompt TEXT NOT NULL,
                      openai_response TEXT NOT NULL,
                      created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS suggests (
                      id INTEGER PRIMARY KEY AUTOINCREMENT,
                      user_prompt TEXT NOT NULL,
                      openai_words TEXT NOT NULL,
                      selected_words TEXT,
                      created_at DATETIME DEFAULT CURRENT_TIMESTAMP
                    )
                    """
                )
                conn.commit()
            except sqlite3.Error as exc:
                logger.error("DB schema init error: %s", exc)
                raise StorageError(f"Failed to initialize schema at {self.path}: {exc}") from exc
            try:
                if add_selected_words_column(conn):
                    logger.info("Added selected_words column to suggests table")
            except sqlite3.Error as exc:
                logger.warning("ALTER TABLE suggests failed: %s", exc)

    def _insert(self, sql: str, params: tuple, *, table: str) -> int:
        with self._lock:
            try:
                conn = self._connection()
                with conn:
                    cur = conn.execute(sql, params)
                return int(cur.lastrowid)
            except sqlite3.Error as exc:
                logger.error("DB insert %s error: %s", table, exc)
                raise StorageError(f"Failed to insert into {table}: {exc}") from exc

    def insert_ask(self, user_prompt: str, response: str) -> int:
        return self._insert(
            "INSERT INTO asks (user_prompt, openai_response) VALUES (?, ?)",
            (user_prompt, response),
            table="asks",
        )

    def insert_suggest(self, user_prompt: str, raw_words: str) -> int:
        return self._insert(
            "INSERT INTO suggests (user_prompt, openai_words, selected_words) VALUES (?, ?, NULL)",
            (user_prompt, raw_words),
            table="suggests",
        )

    def update_latest_suggest_selection(
        self, selected_words: str, *, suggest_id: Optional[int] = None
    ) -> bool:
        """
        Record the words picked from a suggestion.

        Targets `suggest_id` when given, otherwise the suggests row with the
        highest id. Never raises; failures are logged and reported as False.
        """
        if suggest_id is None:
            sql = "UPDATE suggests SET selected_words = ? WHERE id = (SELECT MAX(id) FROM suggests)"
            params: tuple = (selected_words,)
        else:
            sql = "UPDATE suggests SET selected_words = ? WHERE id = ?"
            params = (selected_words, int(suggest_id))
        with self._lock:
            try:
                conn = self._connection()
                with conn:
                    cur = conn.execute(sql, params)
                return cur.rowcount > 0
            except (sqlite3.Error, StorageError) as exc:
                logger.error("DB update suggests error: %s", exc)
                return False

    def _select(self, sql: str, params: tuple, *, table: str) -> List[Dict[str, Any]]:
        with self._lock:
            try:
                rows = self._connection().execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                logger.error("DB read %s error: %s", table, exc)
                raise StorageError(str(exc)) from exc
        return [dict(r) for r in rows]

    def recent_asks(self, limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
        return self._select(
            "SELECT * FROM asks ORDER BY created_at DESC, id DESC LIMIT ?",
            (int(limit),),
            table="asks",
        )

    def recent_suggests(self, limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
        return self._select(
            "SELECT * FROM suggests ORDER BY created_at DESC, id DESC LIMIT ?",
            (int(limit),),
            table="suggests",
        )

    def all_asks(self) -> List[Dict[str, Any]]:
        return self._select("SELECT * FROM asks ORDER BY created_at DESC, id DESC", (), table="asks")

    def all_suggests(self) -> List[Dict[str, Any]]:
        return self._select(
            "SELECT * FROM suggests ORDER BY created_at DESC, id DESC", (), table="suggests"
        )

    def table_columns(self, table: str) -> List[Dict[str, str]]:
        with self._lock:
            try:
                return table_info(self._connection(), table)
            except sqlite3.Error as exc:
                raise StorageError(str(exc)) from exc
