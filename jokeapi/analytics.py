"""Analytics data-store connection.

Holds the one persistent connection the service keeps open for its lifetime.
It is opened by the ``analytics`` startup stage and closed by soft exit.
"""

import asyncio
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)


class AnalyticsStore:
    """SQLite-backed analytics connection."""

    def __init__(self, db_path: str, enabled: bool = True) -> None:
        """Initialise analytics store.

        Args:
            db_path: Path to SQLite database
            enabled: When False, init/record/close are no-ops
        """
        self.db_path = db_path
        self.enabled = enabled
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def connected(self) -> bool:
        return self._conn is not None

    def _connect(self) -> None:
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path, check_same_thread=False)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
        except sqlite3.Error as e:
            logger.debug("Failed to set SQLite journal_mode=WAL during init: %s", e)
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS startup_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                init_timestamp REAL NOT NULL,
                duration_ms REAL NOT NULL,
                init_time_deduction REAL NOT NULL,
                payload TEXT
            )
            """
        )
        conn.commit()
        self._conn = conn

    async def init(self) -> None:
        """Startup stage: open the connection and ensure the schema."""
        if not self.enabled:
            logger.info("Analytics disabled - not connecting")
            return
        if self._conn is not None:
            return
        await asyncio.to_thread(self._connect)
        logger.info(f"Analytics connected ({self.db_path})")

    async def record_startup(self, record: dict[str, Any]) -> None:
        """Persist a startup diagnostic record."""
        if self._conn is None:
            return

        def _insert() -> None:
            self._conn.execute(
                "INSERT INTO startup_events (init_timestamp, duration_ms, init_time_deduction, payload) "
                "VALUES (?, ?, ?, ?)",
                (
                    record["init_timestamp"],
                    record["duration_ms"],
                    record["init_time_deduction"],
                    json.dumps(record, default=str),
                ),
            )
            self._conn.commit()

        await asyncio.to_thread(_insert)

    def count_startups(self) -> int:
        if self._conn is None:
            return 0
        row = self._conn.execute("SELECT COUNT(*) FROM startup_events").fetchone()
        return int(row[0])

    async def end_connection(self) -> None:
        """Close the connection. Safe to call when never connected."""
        conn, self._conn = self._conn, None
        if conn is None:
            return
        await asyncio.to_thread(conn.close)
        logger.info("Analytics connection closed")
