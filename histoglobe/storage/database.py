import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from histoglobe.models import ClassifiedEvent


SCHEMA = """
CREATE TABLE IF NOT EXISTS events (
    id INTEGER PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    latitude REAL NOT NULL,
    longitude REAL NOT NULL,
    year INTEGER,
    category TEXT NOT NULL,
    score INTEGER DEFAULT 0,
    notoriety_score INTEGER DEFAULT 0,
    is_incontournable INTEGER DEFAULT 0,
    discovered_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_score ON events(score DESC);
CREATE INDEX IF NOT EXISTS idx_category ON events(category);

CREATE TABLE IF NOT EXISTS discoveries (
    event_id INTEGER PRIMARY KEY,
    found_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT
);
"""


class Database:
    """Key/value style persistence for discovered events and quiz progress."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(db_path)
        self.conn.row_factory = sqlite3.Row
        self.conn.executescript(SCHEMA)
        self.conn.commit()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def save_events(self, events: list[ClassifiedEvent]) -> int:
        """Insert or replace events. Returns how many rows were written."""
        now = datetime.now(timezone.utc).isoformat()
        self.conn.executemany(
            """INSERT OR REPLACE INTO events
               (id, title, description, latitude, longitude, year, category, score,
                notoriety_score, is_incontournable, discovered_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            [
                (
                    e.id, e.title, e.description, e.latitude, e.longitude, e.year,
                    e.category, e.score, e.notoriety_score, int(e.is_incontournable), now,
                )
                for e in events
            ],
        )
        self.conn.commit()
        return len(events)

    def get_event(self, event_id: int) -> Optional[ClassifiedEvent]:
        row = self.conn.execute("SELECT * FROM events WHERE id = ?", (event_id,)).fetchone()
        return self._row_to_event(row) if row else None

    def query_events(
        self,
        category: Optional[str] = None,
        min_score: int = 0,
        limit: int = 200,
    ) -> list[ClassifiedEvent]:
        sql = "SELECT * FROM events WHERE score >= ?"
        params: list = [min_score]
        if category:
            sql += " AND category = ?"
            params.append(category)
        sql += " ORDER BY score DESC, id ASC LIMIT ?"
        params.append(limit)
        return [self._row_to_event(r) for r in self.conn.execute(sql, params).fetchall()]

    def get_all_event_ids(self) -> set[int]:
        return {r[0] for r in self.conn.execute("SELECT id FROM events").fetchall()}

    # ------------------------------------------------------------------
    # Quiz progress
    # ------------------------------------------------------------------

    def save_discovery(self, event_id: int) -> set[int]:
        """Record an event the player guessed. Returns all discovered ids."""
        self.conn.execute(
            "INSERT OR IGNORE INTO discoveries (event_id, found_at) VALUES (?, ?)",
            (event_id, datetime.now(timezone.utc).isoformat()),
        )
        self.conn.commit()
        return self.get_discoveries()

    def get_discoveries(self) -> set[int]:
        return {r[0] for r in self.conn.execute("SELECT event_id FROM discoveries").fetchall()}

    def get_value(self, key: str, default: Optional[str] = None) -> Optional[str]:
        row = self.conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else default

    def set_value(self, key: str, value: str):
        self.conn.execute("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value))
        self.conn.commit()

    def get_challenges_won(self) -> int:
        return int(self.get_value("challenges_won", "0"))

    def increment_challenges_won(self) -> int:
        won = self.get_challenges_won() + 1
        self.set_value("challenges_won", str(won))
        return won

    def get_stats(self) -> dict:
        total = self.conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]
        by_category = {
            r["category"]: r["n"]
            for r in self.conn.execute(
                "SELECT category, COUNT(*) AS n FROM events GROUP BY category"
            ).fetchall()
        }
        return {
            "total_events": total,
            "by_category": by_category,
            "discoveries": len(self.get_discoveries()),
            "challenges_won": self.get_challenges_won(),
        }

    def _row_to_event(self, row: sqlite3.Row) -> ClassifiedEvent:
        return ClassifiedEvent(
            id=row["id"],
            title=row["title"],
            description=row["description"] or "",
            latitude=row["latitude"],
            longitude=row["longitude"],
            year=row["year"],
            category=row["category"],
            score=row["score"],
            notoriety_score=row["notoriety_score"],
            is_incontournable=bool(row["is_incontournable"]),
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        self.conn.close()
