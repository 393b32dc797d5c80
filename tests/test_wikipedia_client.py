import asyncio

import httpx

from histoglobe.fetchers.wikipedia_client import WikipediaClient, chunked


def run(handler, call):
    """Run `call(client)` against a client whose requests go to `handler`."""
    async def _main():
        async with WikipediaClient(transport=httpx.MockTransport(handler)) as wiki:
            return await call(wiki)
    return asyncio.run(_main())


def test_chunked():
    assert [len(c) for c in chunked(list(range(120)), 50)] == [50, 50, 20]


def test_geosearch_clamps_radius_and_limit():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"query": {"geosearch": [
            {"pageid": 1, "title": "A", "lat": 48.8, "lon": 2.3, "dist": 10},
            {"pageid": 2, "title": "B", "lat": 48.9, "lon": 2.4, "dist": 20},
            {"pageid": 3, "title": "no coords"},
        ]}})

    result = run(handler, lambda wiki: wiki.geosearch(48.85, 2.35, 50000, limit=1000))
    assert result.ok
    assert [c.article_id for c in result.data] == [1, 2]
    assert seen["list"] == "geosearch"
    assert seen["gsradius"] == "10000"
    assert seen["gslimit"] == "500"
    assert seen["format"] == "json"


def test_geosearch_minimum_radius():
    seen = {}

    def handler(request):
        seen.update(request.url.params)
        return httpx.Response(200, json={"query": {"geosearch": []}})

    run(handler, lambda wiki: wiki.geosearch(0.0, 0.0, 1))
    assert seen["gsradius"] == "10"


def test_http_error_fails_soft():
    result = run(lambda request: httpx.Response(503), lambda wiki: wiki.geosearch(0.0, 0.0, 1000))
    assert not result.ok
    assert result.data == []


def test_transport_error_fails_soft():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    result = run(handler, lambda wiki: wiki.keyword_search("massacre", 48.85, 2.35))
    assert not result.ok
    assert result.data == []


def test_invalid_json_fails_soft():
    result = run(
        lambda request: httpx.Response(200, content=b"<html>oops</html>"),
        lambda wiki: wiki.fetch_extracts([1, 2]),
    )
    assert not result.ok
    assert result.data == {}


def test_keyword_search_resolves_coordinates():
    requests = []

    def handler(request):
        params = request.url.params
        requests.append(dict(params))
        if params.get("list") == "search":
            return httpx.Response(200, json={"query": {"search": [{"pageid": 11}, {"pageid": 12}]}})
        return httpx.Response(200, json={"query": {"pages": {
            "11": {"pageid": 11, "title": "Massacre de Paris", "coordinates": [{"lat": 48.85, "lon": 2.34}]},
            "12": {"pageid": 12, "title": "Sans coordonnées"},
        }}})

    result = run(handler, lambda wiki: wiki.keyword_search("massacre", 48.86, 2.34))
    assert result.ok
    assert [(c.article_id, c.title) for c in result.data] == [(11, "Massacre de Paris")]
    assert requests[0]["srsearch"] == "massacre 48.9 2.3"
    assert requests[0]["srlimit"] == "5"
    assert requests[1]["prop"] == "coordinates"
    assert requests[1]["pageids"] == "11|12"


def test_keyword_search_without_hits_makes_one_call():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"query": {"search": []}})

    result = run(handler, lambda wiki: wiki.keyword_search("pogrom", 0.0, 0.0))
    assert result.ok
    assert result.data == []
    assert len(calls) == 1


def test_fetch_extracts_is_chunked():
    batches = []

    def handler(request):
        ids = request.url.params["pageids"].split("|")
        batches.append(len(ids))
        return httpx.Response(200, json={"query": {"pages": {
            pid: {"pageid": int(pid), "title": f"T{pid}", "extract": f"Texte {pid}"} for pid in ids
        }}})

    result = run(handler, lambda wiki: wiki.fetch_extracts(list(range(1, 121))))
    assert result.ok
    assert sorted(batches) == [20, 50, 50]
    assert len(result.data) == 120
    assert result.data[7].title == "T7"
    assert result.data[7].plaintext_intro == "Texte 7"


def test_fetch_language_link_counts():
    def handler(request):
        return httpx.Response(200, json={"query": {"pages": {
            "1": {"pageid": 1, "langlinks": [{"lang": "en"}, {"lang": "de"}, {"lang": "es"}]},
            "2": {"pageid": 2},
        }}})

    result = run(handler, lambda wiki: wiki.fetch_language_link_counts([1, 2]))
    assert result.ok
    assert result.data[1].language_edition_count == 3
    assert result.data[2].language_edition_count == 0


def test_failed_chunk_keeps_partial_data():
    def handler(request):
        ids = request.url.params["pageids"].split("|")
        if "1" in ids:
            return httpx.Response(500)
        return httpx.Response(200, json={"query": {"pages": {
            pid: {"pageid": int(pid), "langlinks": []} for pid in ids
        }}})

    async def call(wiki):
        wiki.batch_size = 2
        return await wiki.fetch_language_link_counts([1, 2, 3, 4])

    result = run(handler, call)
    assert not result.ok
    assert sorted(result.data) == [3, 4]


def test_empty_id_list_makes_no_request():
    def handler(request):
        raise AssertionError("unexpected request")

    assert run(handler, lambda wiki: wiki.fetch_extracts([])).data == {}


def test_unexpected_query_shape_is_treated_as_empty():
    for query in (["unexpected"], "unexpected", 42):
        handler = lambda request, q=query: httpx.Response(200, json={"query": q})
        assert run(handler, lambda wiki: wiki.geosearch(48.85, 2.35, 1000)).data == []
        assert run(handler, lambda wiki: wiki.keyword_search("massacre", 48.85, 2.35)).data == []
        assert run(handler, lambda wiki: wiki.fetch_extracts([1])).data == {}
        assert run(handler, lambda wiki: wiki.fetch_language_link_counts([1])).data == {}


def test_malformed_coordinates_are_skipped():
    def handler(request):
        if request.url.params.get("list") == "search":
            return httpx.Response(200, json={"query": {"search": [{"pageid": 11}, {"pageid": 12}, "junk"]}})
        return httpx.Response(200, json={"query": {"pages": {
            "11": {"pageid": 11, "title": "Dict", "coordinates": {"lat": 1, "lon": 2}},
            "12": {"pageid": 12, "title": "Bonne", "coordinates": [{"lat": 48.8, "lon": 2.3}]},
        }}})

    result = run(handler, lambda wiki: wiki.keyword_search("massacre", 48.85, 2.35))
    assert result.ok
    assert [c.article_id for c in result.data] == [12]
