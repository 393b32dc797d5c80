"""In-memory caches shared across discovery passes.

Both caches grow for the lifetime of the object and are never evicted.
"""

from threading import Lock
from typing import Iterable, Optional

from histoglobe.models import ClassifiedEvent


class DiscoveryCache:
    """Visited grid cells plus every article already scored.

    The article cache maps id -> ClassifiedEvent, or None for a rejected id
    (tombstone), so an id is scored at most once.
    """

    def __init__(self):
        self.articles: dict[int, Optional[ClassifiedEvent]] = {}
        self.cells: set[str] = set()
        self.lock = Lock()

    @staticmethod
    def grid_key(lat: float, lon: float) -> str:
        return f"{lat:.2f}|{lon:.2f}"

    def is_cell_visited(self, lat: float, lon: float) -> bool:
        with self.lock:
            return self.grid_key(lat, lon) in self.cells

    def mark_cells(self, points: Iterable[tuple[float, float]]) -> list[tuple[float, float]]:
        """Mark points as visited and return the ones that were not already."""
        new_points = []
        with self.lock:
            for lat, lon in points:
                key = self.grid_key(lat, lon)
                if key in self.cells:
                    continue
                self.cells.add(key)
                new_points.append((lat, lon))
        return new_points

    def has_article(self, article_id: int) -> bool:
        with self.lock:
            return article_id in self.articles

    def get_article(self, article_id: int) -> Optional[ClassifiedEvent]:
        with self.lock:
            return self.articles.get(article_id)

    def store_article(self, event: ClassifiedEvent):
        with self.lock:
            self.articles[event.id] = event

    def store_tombstone(self, article_id: int):
        with self.lock:
            self.articles[article_id] = None

    def accepted_events(self) -> list[ClassifiedEvent]:
        with self.lock:
            return [e for e in self.articles.values() if e is not None]

    def seed(self, events: Iterable[ClassifiedEvent]) -> int:
        """Pre-load events, e.g. from the database. Returns the number added."""
        added = 0
        with self.lock:
            for event in events:
                if event.id not in self.articles:
                    self.articles[event.id] = event
                    added += 1
        return added

    def clear(self):
        with self.lock:
            self.articles.clear()
            self.cells.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self.articles)
