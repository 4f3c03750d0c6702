import sqlite3
import json
import datetime
from contextlib import contextmanager
from typing import List, Tuple, Optional


class Database:
    """Provides SQLite connection management and schema initialization."""

    _TABLE_DEFINITIONS = {
        "exercise_library": (
            """CREATE TABLE exercise_library (
                    id TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    category TEXT,
                    equipment TEXT,
                    images TEXT NOT NULL DEFAULT '[]',
                    fetched_at TEXT NOT NULL
                );""",
            ["id", "name", "category", "equipment", "images", "fetched_at"],
        ),
        "pending_workouts": (
            """CREATE TABLE pending_workouts (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    payload TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    attempts INTEGER NOT NULL DEFAULT 0,
                    last_error TEXT
                );""",
            ["id", "payload", "created_at", "attempts", "last_error"],
        ),
    }

    def __init__(self, db_path: str = "fitquest.db") -> None:
        self._db_path = db_path
        self._ensure_schema()

    @contextmanager
    def _connection(self):
        connection = sqlite3.connect(self._db_path)
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def _ensure_schema(self) -> None:
        with self._connection() as conn:
            for table, (sql, columns) in self._TABLE_DEFINITIONS.items():
                self._ensure_table(conn, table, sql, columns)

    def _ensure_table(
        self, conn: sqlite3.Connection, table: str, sql: str, columns: List[str]
    ) -> None:
        cur = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?;", (table,)
        )
        if cur.fetchone() is None:
            conn.execute(sql)
            return

        cur = conn.execute(f"PRAGMA table_info({table});")
        existing_cols = [row[1] for row in cur.fetchall()]
        if existing_cols == columns:
            return

        conn.execute(f"ALTER TABLE {table} RENAME TO {table}_old;")
        conn.execute(sql)
        common = [c for c in existing_cols if c in columns]
        if common:
            cols = ", ".join(common)
            conn.execute(f"INSERT INTO {table} ({cols}) SELECT {cols} FROM {table}_old;")
        conn.execute(f"DROP TABLE {table}_old;")


class BaseRepository(Database):
    """Base repository providing helper methods."""

    def execute(self, query: str, params: Tuple = ()) -> int:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.lastrowid

    def fetch_all(self, query: str, params: Tuple = ()) -> List[Tuple]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.fetchall()


class ExerciseLibraryRepository(BaseRepository):
    """Local cache of the remote exercise library."""

    def replace_all(self, exercises: list[dict]) -> None:
        now = datetime.datetime.now().isoformat(timespec="seconds")
        rows = [
            (
                str(ex["id"]),
                ex.get("name") or "",
                ex.get("category"),
                ex.get("equipment"),
                json.dumps(list(ex.get("images") or [])),
                now,
            )
            for ex in exercises
            if ex.get("id") is not None
        ]
        with self._connection() as conn:
            conn.execute("DELETE FROM exercise_library;")
            conn.executemany(
                "INSERT INTO exercise_library (id, name, category, equipment, images, fetched_at) "
                "VALUES (?, ?, ?, ?, ?, ?);",
                rows,
            )

    def fetch_all_exercises(self) -> list[dict]:
        rows = self.fetch_all(
            "SELECT id, name, category, equipment, images FROM exercise_library ORDER BY name;"
        )
        return [
            {
                "id": eid,
                "name": name,
                "category": category,
                "equipment": equipment,
                "images": json.loads(images or "[]"),
            }
            for eid, name, category, equipment, images in rows
        ]

    def last_fetched(self) -> Optional[str]:
        rows = self.fetch_all("SELECT MAX(fetched_at) FROM exercise_library;")
        return rows[0][0] if rows else None


class PendingWorkoutRepository(BaseRepository):
    """Workout payloads whose submission failed and can be replayed as-is."""

    def add(self, payload: dict, error: str | None = None) -> int:
        return self.execute(
            "INSERT INTO pending_workouts (payload, created_at, attempts, last_error) "
            "VALUES (?, ?, 1, ?);",
            (
                json.dumps(payload, sort_keys=True),
                datetime.datetime.now().isoformat(timespec="seconds"),
                error,
            ),
        )

    def fetch_all_pending(self) -> list[tuple[int, dict, int]]:
        rows = self.fetch_all(
            "SELECT id, payload, attempts FROM pending_workouts ORDER BY id;"
        )
        return [(pid, json.loads(payload), attempts) for pid, payload, attempts in rows]

    def record_failure(self, pending_id: int, error: str) -> None:
        self.execute(
            "UPDATE pending_workouts SET attempts = attempts + 1, last_error = ? WHERE id = ?;",
            (error, pending_id),
        )

    def remove(self, pending_id: int) -> None:
        self.execute("DELETE FROM pending_workouts WHERE id = ?;", (pending_id,))
