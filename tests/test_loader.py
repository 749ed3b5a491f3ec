from __future__ import annotations

import asyncio
import json

import httpx

from notwiki.client.loader import IndexLoader

INDEX_URL = "http://wiki.test/api/search-index.json"
INDEX = [
    {"filename": "paris.html", "title": "Paris", "summary": "capital of France", "inlinks": 3},
    {"filename": "lyon.html", "title": "Lyon", "keywords": None, "extra": "ignored"},
]


def make_loader(responses, delay: float = 0.0):
    """Loader over a mock transport replaying ``responses`` in order."""
    calls = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if delay:
            await asyncio.sleep(delay)
        status, body = responses[min(len(calls), len(responses)) - 1]
        return httpx.Response(status, content=body)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return IndexLoader(client, INDEX_URL), calls


def test_load_parses_and_memoizes():
    async def scenario():
        loader, calls = make_loader([(200, json.dumps(INDEX))])
        first = await loader.load()
        second = await loader.load()
        return loader, calls, first, second

    loader, calls, first, second = asyncio.run(scenario())
    assert [a.title for a in first] == ["Paris", "Lyon"]
    assert first[1].keywords == ()
    assert second is first
    assert loader.cached is first
    assert len(calls) == 1


def test_concurrent_loads_share_one_fetch():
    async def scenario():
        loader, calls = make_loader([(200, json.dumps(INDEX))], delay=0.02)
        results = await asyncio.gather(*(loader.load() for _ in range(5)))
        return loader, calls, results

    loader, calls, results = asyncio.run(scenario())
    assert len(calls) == 1
    assert loader.fetch_count == 1
    assert all(result is results[0] for result in results)
    assert len(results[0]) == 2


def test_failed_load_resolves_empty_and_allows_retry():
    async def scenario():
        loader, calls = make_loader([(500, b"oops"), (200, json.dumps(INDEX))], delay=0.01)
        failed = await asyncio.gather(loader.load(), loader.load(), loader.load())
        assert loader.fetch_count == 1
        assert loader.cached is None
        retried = await loader.load()
        return calls, failed, retried

    calls, failed, retried = asyncio.run(scenario())
    assert failed == [(), (), ()]
    assert len(retried) == 2
    assert len(calls) == 2


def test_malformed_index_is_treated_as_unavailable():
    async def scenario():
        loader, _ = make_loader([(200, b"{not json"), (200, b'{"title": "not a list"}')])
        return await loader.load(), await loader.load()

    assert asyncio.run(scenario()) == ((), ())


def test_transport_error_is_treated_as_unavailable():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    async def scenario():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        loader = IndexLoader(client, INDEX_URL)
        return await loader.load()

    assert asyncio.run(scenario()) == ()
