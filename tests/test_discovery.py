import asyncio

import pytest

from histoglobe.models import CandidateArticle, ExtractRecord, FetchResult, NotorietyRecord
from histoglobe.processing import discovery as discovery_module
from histoglobe.processing.discovery import EventDiscovery, build_grid, discover_events, fetch_wiki_events
from histoglobe.storage.cache import DiscoveryCache

LAT, LON = 48.85, 2.35

ARTICLES = {
    # id: (title, extract, languages)
    1: ("Rafle du Vel d'Hiv",
        "En 1942, les nazis ont déporté des milliers de prisonniers vers un camp de concentration.", 40),
    2: ("Massacre de la Saint-Barthélemy",
        "Le massacre de la Saint-Barthélemy est le massacre de protestants à Paris le 24 août 1572.", 16),
    3: ("Stade municipal",
        "Le stade accueille les matchs du club de football local depuis 1978.", 3),
    4: ("Grotte des Fées",
        "La grotte des Fées est une grotte ornée découverte en 1901, avec des vestiges du paléolithique.", 5),
    6: ("Grotte des Loups",
        "La grotte des Loups est une grotte ornée découverte en 1901, avec des vestiges du paléolithique.", 5),
    # identical scores, to check the tie order
    7: ("Traité de paix", "Le traité de paix fut signé en 1648 entre les deux royaumes.", 10),
    8: ("Traité de paix", "Le traité de paix fut signé en 1648 entre les deux royaumes.", 10),
    9: ("Traité de paix", "Le traité de paix fut signé en 1648 entre les deux royaumes.", 10),
}


def _candidate(article_id):
    return CandidateArticle(article_id, ARTICLES.get(article_id, ("?",))[0], LAT, LON)


class FakeWiki:
    def __init__(self, geo_ids=(1, 2, 3, 4), keyword_ids=(6,), fail_geo=False, fail_extracts=False):
        self.geo_ids = list(geo_ids)
        self.keyword_ids = list(keyword_ids)
        self.fail_geo = fail_geo
        self.fail_extracts = fail_extracts
        self.geo_calls = []
        self.keyword_calls = []
        self.extract_calls = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def geosearch(self, lat, lon, radius, limit=150):
        self.geo_calls.append((lat, lon, radius, limit))
        if self.fail_geo:
            return FetchResult([], error="boom")
        # only the center cell has articles
        if (lat, lon) != (LAT, LON):
            return FetchResult([])
        return FetchResult([_candidate(i) for i in self.geo_ids])

    async def keyword_search(self, query, lat, lon, limit=5):
        self.keyword_calls.append((query, lat, lon, limit))
        if query != "massacre":
            return FetchResult([])
        return FetchResult([_candidate(i) for i in self.keyword_ids])

    async def fetch_extracts(self, page_ids):
        self.extract_calls.append(list(page_ids))
        if self.fail_extracts:
            return FetchResult({}, error="boom")
        return FetchResult({
            i: ExtractRecord(i, ARTICLES[i][0], ARTICLES[i][1]) for i in page_ids if i in ARTICLES
        })

    async def fetch_language_link_counts(self, page_ids):
        return FetchResult({
            i: NotorietyRecord(i, ARTICLES[i][2]) for i in page_ids if i in ARTICLES
        })


def discover(wiki, cache=None, radius=10000, **kwargs):
    engine = EventDiscovery(wiki, cache=cache, **kwargs)
    return asyncio.run(engine.discover(LAT, LON, radius)), engine


def test_build_grid():
    grid = build_grid(10.0, 20.0)
    assert grid[0] == (10.0, 20.0)
    assert len(grid) == 5
    assert grid[1] == pytest.approx((10.18, 20.0))
    assert grid[4] == pytest.approx((10.0, 19.82))


def test_discover_ranks_and_filters():
    wiki = FakeWiki()
    report, engine = discover(wiki)

    assert [e.id for e in report.events] == [2, 1, 6]
    massacre, rafle, grotte = report.events

    # 565 * (1 + log2(16) * 0.3)
    assert massacre.score == 1243
    assert massacre.title == "(1572) Massacre de la Saint-Barthélemy"
    assert massacre.year == 1572

    # memorial boost, notoriety multiplier skipped
    assert rafle.score == 1150
    assert rafle.category == "shock"
    assert rafle.notoriety_score == 40

    # minor origins survives only because keyword search found it
    assert grotte.category == "origins"
    assert grotte.is_incontournable
    assert grotte.score == 12

    assert report.candidates == 5
    assert report.accepted == 3
    assert report.rejected == 2
    assert not report.degraded


def test_rejections_are_tombstoned():
    cache = DiscoveryCache()
    discover(FakeWiki(), cache=cache)
    assert cache.has_article(3) and cache.get_article(3) is None
    assert cache.has_article(4) and cache.get_article(4) is None
    assert cache.get_article(1).score == 1150


def test_fan_out_covers_grid_and_keywords():
    wiki = FakeWiki()
    discover(wiki, radius=50000)
    assert len(wiki.geo_calls) == 5
    assert all(radius == 10000 and limit == 150 for _, _, radius, limit in wiki.geo_calls)
    assert len(wiki.keyword_calls) == 8
    # keyword searches are scoped to the requested point
    assert {(lat, lon) for _, lat, lon, _ in wiki.keyword_calls} == {(LAT, LON)}


def test_second_pass_over_same_grid_is_skipped():
    cache = DiscoveryCache()
    discover(FakeWiki(), cache=cache)

    wiki = FakeWiki()
    report, _ = discover(wiki, cache=cache)
    assert report.skipped
    assert report.events == []
    assert wiki.geo_calls == []
    assert wiki.keyword_calls == []


def test_known_articles_are_not_rescored():
    cache = DiscoveryCache()
    cache.store_tombstone(2)
    wiki = FakeWiki()
    report, _ = discover(wiki, cache=cache)
    assert 2 not in [e.id for e in report.events]
    assert 2 not in wiki.extract_calls[0]


def test_keyword_hit_also_found_by_geosearch_is_incontournable():
    report, _ = discover(FakeWiki(geo_ids=(1, 2), keyword_ids=(2,)))
    by_id = {e.id: e for e in report.events}
    assert by_id[2].is_incontournable
    assert not by_id[1].is_incontournable


def test_results_are_truncated():
    report, _ = discover(FakeWiki(), max_results=2)
    assert [e.id for e in report.events] == [2, 1]
    assert report.accepted == 3


def test_failed_calls_degrade_without_raising():
    cache = DiscoveryCache()
    report, _ = discover(FakeWiki(fail_geo=True, keyword_ids=()), cache=cache)
    assert report.events == []
    assert report.failed_calls == 5
    assert report.degraded
    # cells are burned even though the fetch failed
    assert cache.is_cell_visited(LAT, LON)


def test_missing_extract_scores_title_only():
    report, _ = discover(FakeWiki(fail_extracts=True, geo_ids=(1, 2), keyword_ids=()))
    assert report.degraded
    # title only: base 10 + 45 + 500 + 10, then the notoriety multiplier
    massacre = next(e for e in report.events if e.id == 2)
    assert massacre.description == ""
    assert massacre.year is None
    assert massacre.score == 1243


def test_discover_events_with_injected_client():
    wiki = FakeWiki()
    report = asyncio.run(discover_events(LAT, LON, cache=DiscoveryCache(), cfg={}, client=wiki))
    assert [e.id for e in report.events] == [2, 1, 6]
    assert wiki.geo_calls[0][2] == 10000


def test_equal_scores_keep_merge_order():
    report, _ = discover(FakeWiki(geo_ids=(9, 8), keyword_ids=(7,)))
    assert len({e.score for e in report.events}) == 1
    # geosearch hits first, in result order, then keyword hits
    assert [e.id for e in report.events] == [9, 8, 7]


def test_fetch_wiki_events_reuses_the_shared_cache(monkeypatch):
    monkeypatch.setattr(discovery_module, "DEFAULT_CACHE", DiscoveryCache())
    wiki = FakeWiki()
    monkeypatch.setattr(discovery_module.WikipediaClient, "from_config", staticmethod(lambda cfg, **kwargs: wiki))

    assert [e.id for e in fetch_wiki_events(LAT, LON, cfg={})] == [2, 1, 6]
    assert fetch_wiki_events(LAT, LON, cfg={}) == []
    assert len(wiki.geo_calls) == 5
    assert discovery_module.DEFAULT_CACHE.has_article(3)
