"""Async client for the MediaWiki Action API (geosearch, search, extracts, langlinks).

Every call fails soft: transport errors, non-2xx responses and unparseable
bodies are logged and returned as a FetchResult carrying empty data and an
error message. Nothing here raises on network trouble.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Iterator, Optional

import httpx

from histoglobe.models import CandidateArticle, ExtractRecord, FetchResult, NotorietyRecord

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://fr.wikipedia.org/w/api.php"
DEFAULT_USER_AGENT = "histoglobe/0.1 (https://github.com/histoglobe/histoglobe)"

MIN_RADIUS = 10
MAX_RADIUS = 10000
MAX_GEOSEARCH_LIMIT = 500
BATCH_SIZE = 50


def chunked(ids: list[int], size: int = BATCH_SIZE) -> Iterator[list[int]]:
    for i in range(0, len(ids), size):
        yield ids[i:i + size]


def _query(payload: dict) -> dict:
    query = payload.get("query")
    return query if isinstance(query, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


def _pages(payload: dict) -> dict[int, dict]:
    """query.pages keyed by integer page id, skipping malformed entries."""
    pages = _query(payload).get("pages") or {}
    result = {}
    if not isinstance(pages, dict):
        return result
    for pid, page in pages.items():
        try:
            page_id = int(pid)
        except (TypeError, ValueError):
            continue
        if isinstance(page, dict):
            result[page_id] = page
    return result


def _candidate(raw: Any) -> Optional[CandidateArticle]:
    try:
        return CandidateArticle(
            article_id=int(raw["pageid"]),
            title=str(raw.get("title", "")),
            latitude=float(raw["lat"]),
            longitude=float(raw["lon"]),
        )
    except (KeyError, TypeError, ValueError, AttributeError):
        return None


class WikipediaClient:
    """Thin wrapper around one httpx.AsyncClient.

    Use as an async context manager, or pass an existing httpx.AsyncClient
    (which the caller then owns).
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 15,
        max_concurrent: int = 10,
        user_agent: str = DEFAULT_USER_AGENT,
        batch_size: int = BATCH_SIZE,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.batch_size = max(1, batch_size)
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent))
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            follow_redirects=True,
            transport=transport,
        )

    @classmethod
    def from_config(cls, cfg: dict, **kwargs) -> "WikipediaClient":
        return cls(
            api_url=cfg.get("api_url", DEFAULT_API_URL),
            timeout=cfg.get("request_timeout", 15),
            max_concurrent=cfg.get("max_concurrent", 10),
            user_agent=cfg.get("user_agent", DEFAULT_USER_AGENT),
            batch_size=cfg.get("batch_size", BATCH_SIZE),
            **kwargs,
        )

    async def __aenter__(self) -> "WikipediaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self):
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, params: dict[str, str]) -> FetchResult[dict]:
        query = {**params, "format": "json", "origin": "*"}
        async with self._semaphore:
            try:
                resp = await self._client.get(self.api_url, params=query)
                resp.raise_for_status()
                payload = resp.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"  [Wiki] Request failed ({params.get('list') or params.get('prop')}): {e}")
                return FetchResult({}, error=str(e) or type(e).__name__)
        if not isinstance(payload, dict):
            return FetchResult({}, error="unexpected payload")
        return FetchResult(payload)

    # ------------------------------------------------------------------
    # Candidate sources
    # ------------------------------------------------------------------

    async def geosearch(
        self, lat: float, lon: float, radius: float, limit: int = 150
    ) -> FetchResult[list[CandidateArticle]]:
        """Articles with coordinates within radius meters of (lat, lon)."""
        r = int(min(MAX_RADIUS, max(MIN_RADIUS, radius)))
        result = await self._get({
            "action": "query",
            "list": "geosearch",
            "gscoord": f"{lat}|{lon}",
            "gsradius": str(r),
            "gslimit": str(min(limit, MAX_GEOSEARCH_LIMIT)),
        })
        if not result.ok:
            return FetchResult([], error=result.error)

        raw = _list(_query(result.data).get("geosearch"))
        candidates = [c for c in (_candidate(item) for item in raw) if c is not None]
        return FetchResult(candidates)

    async def keyword_search(
        self, query: str, lat: float, lon: float, limit: int = 5
    ) -> FetchResult[list[CandidateArticle]]:
        """Full-text search loosely scoped by the point, with coordinates resolved.

        Hits without coordinates are dropped.
        """
        result = await self._get({
            "action": "query",
            "list": "search",
            "srsearch": f"{query} {lat:.1f} {lon:.1f}",
            "srlimit": str(limit),
        })
        if not result.ok:
            return FetchResult([], error=result.error)

        hits = _list(_query(result.data).get("search"))
        page_ids = []
        for hit in hits:
            try:
                page_ids.append(int(hit["pageid"]))
            except (KeyError, TypeError, ValueError):
                continue
        if not page_ids:
            return FetchResult([])

        return await self.resolve_coordinates(page_ids)

    async def resolve_coordinates(self, page_ids: list[int]) -> FetchResult[list[CandidateArticle]]:
        result = await self._get({
            "action": "query",
            "pageids": "|".join(str(p) for p in page_ids),
            "prop": "coordinates",
        })
        if not result.ok:
            return FetchResult([], error=result.error)

        candidates = []
        for page_id, page in _pages(result.data).items():
            coords = _list(page.get("coordinates"))
            if not coords or not isinstance(coords[0], dict):
                continue
            candidate = _candidate({
                "pageid": page_id,
                "title": page.get("title", ""),
                "lat": coords[0].get("lat"),
                "lon": coords[0].get("lon"),
            })
            if candidate is not None:
                candidates.append(candidate)
        return FetchResult(candidates)

    # ------------------------------------------------------------------
    # Batch enrichment
    # ------------------------------------------------------------------

    async def _batched(self, page_ids: list[int], params: dict[str, str]) -> tuple[list[dict], list[str]]:
        """Run one request per chunk of ids concurrently. Returns (payloads, errors)."""
        chunks = list(chunked(page_ids, self.batch_size))
        results = await asyncio.gather(*[
            self._get({**params, "pageids": "|".join(str(p) for p in chunk)})
            for chunk in chunks
        ])
        payloads = [r.data for r in results if r.ok]
        errors = [r.error for r in results if not r.ok]
        return payloads, errors

    async def fetch_extracts(self, page_ids: list[int]) -> FetchResult[dict[int, ExtractRecord]]:
        """Plaintext intro of each page, keyed by page id."""
        if not page_ids:
            return FetchResult({})

        payloads, errors = await self._batched(page_ids, {
            "action": "query",
            "prop": "extracts",
            "exintro": "true",
            "explaintext": "true",
            "exlimit": str(min(len(page_ids), self.batch_size)),
        })
        extracts: dict[int, ExtractRecord] = {}
        for payload in payloads:
            for page_id, page in _pages(payload).items():
                extracts[page_id] = ExtractRecord(
                    article_id=page_id,
                    title=str(page.get("title", "")),
                    plaintext_intro=str(page.get("extract") or ""),
                )
        return FetchResult(extracts, error="; ".join(errors) if errors else None)

    async def fetch_language_link_counts(self, page_ids: list[int]) -> FetchResult[dict[int, NotorietyRecord]]:
        """Number of other-language editions of each page, keyed by page id."""
        if not page_ids:
            return FetchResult({})

        payloads, errors = await self._batched(page_ids, {
            "action": "query",
            "prop": "langlinks",
            "lllimit": "500",
        })
        counts: dict[int, NotorietyRecord] = {}
        for payload in payloads:
            for page_id, page in _pages(payload).items():
                links = _list(page.get("langlinks"))
                counts[page_id] = NotorietyRecord(
                    article_id=page_id,
                    language_edition_count=len(links),
                )
        return FetchResult(counts, error="; ".join(errors) if errors else None)
