# src/ivy_planner/storage/day_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from collections.abc import Iterator
from datetime import date
from pathlib import Path

from ..core.errors import PersistenceError
from ..planner.models import DayBucket, StatisticsSnapshot
from .codec import day_from_dict, day_to_dict

logger = logging.getLogger(__name__)


class DayStore:
    """
    SQLite day store: one row per calendar day, the bucket kept as a JSON payload.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "days.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("DayStore ready db=%s days=%s", self._db_path, self.count_days())

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextlib.contextmanager
    def _conn(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise PersistenceError(f"{action}: cannot open {self._db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            logger.exception("DayStore %s failed", action)
            raise PersistenceError(f"{action} failed: {e}") from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._conn("ensure schema") as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS days (
                    day TEXT PRIMARY KEY,
                    payload TEXT NOT NULL DEFAULT '{}',
                    created_at REAL NOT NULL,
                    updated_at REAL NOT NULL,
                    active_count INTEGER NOT NULL DEFAULT 0,
                    has_statistics INTEGER NOT NULL DEFAULT 0
                )
                """
            )

            cur.execute("PRAGMA table_info(days)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE days ADD COLUMN {name} {decl}")
                logger.info("DayStore migration: added column %s", name)

            add_col("active_count", "INTEGER NOT NULL DEFAULT 0")
            add_col("has_statistics", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_days_stats ON days(has_statistics, day)")
            conn.commit()

    def _row_to_day(self, row: sqlite3.Row) -> DayBucket:
        try:
            data = json.loads(row["payload"] or "{}")
            if not isinstance(data, dict):
                raise ValueError("payload is not an object")
            data.setdefault("date", row["day"])
            return day_from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            raise PersistenceError(f"corrupt payload for day {row['day']}: {e}") from e

    # ---- public API ----

    def count_days(self) -> int:
        with self._conn("count days") as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM days").fetchone()
            return int(n)

    def find_day(self, day: date) -> DayBucket | None:
        with self._conn("find day") as conn:
            row = conn.execute("SELECT * FROM days WHERE day = ?", (day.isoformat(),)).fetchone()
        return self._row_to_day(row) if row else None

    def load_day(self, day: date) -> DayBucket:
        existing = self.find_day(day)
        if existing is not None:
            return existing
        bucket = DayBucket(date=day)
        self.save_day(bucket)
        logger.info("Created day %s", day)
        return bucket

    def save_day(self, bucket: DayBucket) -> None:
        try:
            payload = json.dumps(day_to_dict(bucket), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"cannot encode day {bucket.date}: {e}") from e

        now = time.time()
        with self._conn("save day") as conn:
            conn.execute(
                """
                INSERT INTO days(day, payload, created_at, updated_at, active_count, has_statistics)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(day) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at,
                    active_count = excluded.active_count,
                    has_statistics = excluded.has_statistics
                """,
                (
                    bucket.date.isoformat(),
                    payload,
                    now,
                    now,
                    len(bucket.active_queue),
                    1 if bucket.statistics is not None else 0,
                ),
            )
            conn.commit()
        logger.debug("Saved day %s (active=%d)", bucket.date, len(bucket.active_queue))

    def latest_day_before(self, day: date) -> DayBucket | None:
        with self._conn("latest day") as conn:
            row = conn.execute(
                "SELECT * FROM days WHERE day < ? ORDER BY day DESC LIMIT 1",
                (day.isoformat(),),
            ).fetchone()
        return self._row_to_day(row) if row else None

    def latest_statistics_before(self, day: date) -> StatisticsSnapshot | None:
        with self._conn("latest statistics") as conn:
            row = conn.execute(
                """
                SELECT *
                FROM days
                WHERE day < ? AND has_statistics = 1
                ORDER BY day DESC
                    LIMIT 1
                """,
                (day.isoformat(),),
            ).fetchone()
        if not row:
            return None
        return self._row_to_day(row).statistics

    def list_days(self, limit: int = 30) -> list[date]:
        with self._conn("list days") as conn:
            rows = conn.execute(
                "SELECT day FROM days ORDER BY day DESC LIMIT ?",
                (int(limit),),
            ).fetchall()
        return [date.fromisoformat(r["day"]) for r in rows]
