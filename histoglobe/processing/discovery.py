"""Discover, score and rank historical events around a point.

One pass:
  1. build a 5-point grid around the point, skip cells already visited
  2. geosearch each new cell (over-fetching 150 candidates) and run the
     keyword searches around the requested point, all concurrently
  3. merge by article id, dropping ids already scored in an earlier pass
  4. fetch extracts and language-link counts in 50-id batches, concurrently
  5. score each candidate; rejects are cached as tombstones
  6. sort by score (stable) and keep the top 30
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from histoglobe.config import load_config
from histoglobe.fetchers.wikipedia_client import MAX_RADIUS, WikipediaClient
from histoglobe.models import CandidateArticle, ClassifiedEvent, DiscoveryReport, ExtractRecord, NotorietyRecord
from histoglobe.processing.classifier import apply_notoriety, compute_score, is_memorial_score, is_minor_origins, notoriety_multiplier
from histoglobe.processing.presentation import format_title, trim_extract
from histoglobe.processing.taxonomy import KEYWORD_SEARCHES
from histoglobe.processing.temporal import extract_year
from histoglobe.storage.cache import DiscoveryCache

logger = logging.getLogger(__name__)

MAX_RESULTS = 30
SHADOW_LIMIT = 150
GRID_OFFSET = 0.18  # degrees, ~20km
DEFAULT_RADIUS = 10000

# Shared by discover_events / fetch_wiki_events when no cache is passed in
DEFAULT_CACHE = DiscoveryCache()


def build_grid(lat: float, lon: float, offset: float = GRID_OFFSET) -> list[tuple[float, float]]:
    """Center plus the four cardinal offsets."""
    return [
        (lat, lon),
        (lat + offset, lon),
        (lat - offset, lon),
        (lat, lon + offset),
        (lat, lon - offset),
    ]


class EventDiscovery:
    def __init__(
        self,
        client: WikipediaClient,
        cache: Optional[DiscoveryCache] = None,
        max_results: int = MAX_RESULTS,
        shadow_limit: int = SHADOW_LIMIT,
        grid_offset: float = GRID_OFFSET,
        keyword_searches: Optional[list[str]] = None,
        keyword_search_limit: int = 5,
    ):
        self.client = client
        self.cache = cache if cache is not None else DiscoveryCache()
        self.max_results = max_results
        self.shadow_limit = shadow_limit
        self.grid_offset = grid_offset
        self.keyword_searches = list(KEYWORD_SEARCHES if keyword_searches is None else keyword_searches)
        self.keyword_search_limit = keyword_search_limit

    @classmethod
    def from_config(cls, client: WikipediaClient, cfg: dict, cache: Optional[DiscoveryCache] = None) -> "EventDiscovery":
        return cls(
            client,
            cache=cache,
            max_results=cfg.get("max_results", MAX_RESULTS),
            shadow_limit=cfg.get("shadow_limit", SHADOW_LIMIT),
            grid_offset=cfg.get("grid_offset", GRID_OFFSET),
            keyword_searches=cfg.get("keyword_searches"),
            keyword_search_limit=cfg.get("keyword_search_limit", 5),
        )

    async def discover(self, lat: float, lon: float, radius: float = DEFAULT_RADIUS) -> DiscoveryReport:
        report = DiscoveryReport()

        # Cells are marked before fetching: a failed fetch still burns the cell.
        new_points = self.cache.mark_cells(build_grid(lat, lon, self.grid_offset))
        if not new_points:
            logger.info(f"  [Discovery] Grid around {lat:.2f}|{lon:.2f} already scanned, skipping")
            report.skipped = True
            return report

        # 1. Shadow fetch: geosearch per new cell + keyword searches, concurrently
        search_radius = min(radius, MAX_RADIUS)
        geo_results, kw_results = await asyncio.gather(
            asyncio.gather(*[
                self.client.geosearch(p_lat, p_lon, search_radius, self.shadow_limit)
                for p_lat, p_lon in new_points
            ]),
            asyncio.gather(*[
                self.client.keyword_search(kw, lat, lon, self.keyword_search_limit)
                for kw in self.keyword_searches
            ]),
        )
        report.failed_calls += sum(1 for r in (*geo_results, *kw_results) if not r.ok)

        keyword_ids = {c.article_id for r in kw_results for c in r.data}

        candidates: dict[int, CandidateArticle] = {}
        for result in (*geo_results, *kw_results):
            for c in result.data:
                if c.article_id not in candidates and not self.cache.has_article(c.article_id):
                    candidates[c.article_id] = c

        report.candidates = len(candidates)
        if not candidates:
            return report

        logger.info(f"  [Discovery] Shadow fetch: {len(candidates)} raw articles (limit {self.shadow_limit}/cell)")

        # 2. Extracts + language links, concurrently
        page_ids = list(candidates)
        extracts, notoriety = await asyncio.gather(
            self.client.fetch_extracts(page_ids),
            self.client.fetch_language_link_counts(page_ids),
        )
        report.failed_calls += sum(1 for r in (extracts, notoriety) if not r.ok)

        # 3. Score, classify, filter
        scored: list[ClassifiedEvent] = []
        for candidate in candidates.values():
            event = self._classify_candidate(
                candidate,
                extracts.data.get(candidate.article_id),
                notoriety.data.get(candidate.article_id),
                candidate.article_id in keyword_ids,
            )
            if event is None:
                report.rejected += 1
                continue
            scored.append(event)

        # 4. Rank; sorted() is stable so ties keep classification order
        ranked = sorted(scored, key=lambda e: e.score, reverse=True)
        report.accepted = len(ranked)
        report.events = ranked[:self.max_results]

        logger.info(
            f"  [Discovery] {report.candidates} raw -> {report.accepted} kept -> top {len(report.events)}"
            + (f" ({report.failed_calls} failed calls)" if report.degraded else "")
        )
        return report

    def _classify_candidate(
        self,
        candidate: CandidateArticle,
        extract: Optional[ExtractRecord],
        notoriety: Optional[NotorietyRecord],
        from_keyword: bool,
    ) -> Optional[ClassifiedEvent]:
        """Score one candidate and cache the outcome. Returns None when rejected."""
        raw_extract = extract.plaintext_intro if extract else ""
        raw_title = (extract.title if extract and extract.title else candidate.title)
        langs = notoriety.language_edition_count if notoriety else 0

        result = compute_score(raw_title, raw_extract, langs)
        if result.rejected:
            self.cache.store_tombstone(candidate.article_id)
            logger.info(f"  [Discovery] x \"{raw_title}\" - {result.reason}")
            return None

        final_score = apply_notoriety(result.score, langs)

        if is_minor_origins(result.category, langs, from_keyword):
            self.cache.store_tombstone(candidate.article_id)
            logger.info(f"  [Discovery] x \"{raw_title}\" - minor origins ({langs} languages < 15)")
            return None

        year = extract_year(raw_extract)
        event = ClassifiedEvent(
            id=candidate.article_id,
            title=format_title(raw_title, year, raw_extract),
            description=trim_extract(raw_extract, year),
            latitude=candidate.latitude,
            longitude=candidate.longitude,
            year=year,
            category=result.category,
            score=final_score,
            notoriety_score=langs,
            is_incontournable=from_keyword,
        )
        self.cache.store_article(event)

        boost = "memorial" if is_memorial_score(result.score) else f"x{notoriety_multiplier(langs):.2f}"
        logger.info(
            f"  [Discovery] + \"{event.title}\" - {event.category} - score {final_score} "
            f"(base:{result.score} {boost}, {langs} languages{', keyword' if from_keyword else ''})"
        )
        return event


async def discover_events(
    lat: float,
    lon: float,
    radius: Optional[float] = None,
    cache: Optional[DiscoveryCache] = None,
    cfg: Optional[dict] = None,
    client: Optional[WikipediaClient] = None,
) -> DiscoveryReport:
    """Run one discovery pass, creating a client from config if none is given.

    Without an explicit cache the process-wide DEFAULT_CACHE is used, so a
    repeated call over the same grid returns nothing new.
    """
    cfg = cfg if cfg is not None else load_config()
    cache = cache if cache is not None else DEFAULT_CACHE
    radius = radius if radius is not None else cfg.get("default_radius", DEFAULT_RADIUS)

    if client is not None:
        return await EventDiscovery.from_config(client, cfg, cache).discover(lat, lon, radius)

    async with WikipediaClient.from_config(cfg) as wiki:
        return await EventDiscovery.from_config(wiki, cfg, cache).discover(lat, lon, radius)


def fetch_wiki_events(
    lat: float,
    lon: float,
    radius: Optional[float] = None,
    cache: Optional[DiscoveryCache] = None,
    cfg: Optional[dict] = None,
) -> list[ClassifiedEvent]:
    """Ranked events around (lat, lon). Empty when nothing new was found."""
    return asyncio.run(discover_events(lat, lon, radius, cache=cache, cfg=cfg)).events
