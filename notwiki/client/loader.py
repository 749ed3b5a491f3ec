from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from .models import ArticleRecord, SearchIndex, parse_search_index

logger = logging.getLogger(__name__)


class IndexLoader:
    """Fetch-once cache for the search index artifact.

    Concurrent ``load()`` calls share one in-flight fetch through a future that
    the fetch resolves exactly once. A failed load resolves every waiter to an
    empty tuple and clears the in-flight handle so a later call can retry.
    """

    def __init__(self, client: httpx.AsyncClient, url: str) -> None:
        self._client = client
        self.url = url
        self._index: Optional[tuple[ArticleRecord, ...]] = None
        self._pending: Optional[asyncio.Future] = None
        self.fetch_count = 0

    @property
    def cached(self) -> Optional[SearchIndex]:
        return self._index

    async def load(self) -> SearchIndex:
        if self._index is not None:
            return self._index
        if self._pending is not None:
            # shield so a cancelled waiter does not cancel the shared load
            return await asyncio.shield(self._pending)

        future = asyncio.get_running_loop().create_future()
        self._pending = future
        try:
            index = await self._fetch()
            if index is not None:
                self._index = index
        finally:
            self._pending = None
            future.set_result(self._index if self._index is not None else ())
        return future.result()

    async def _fetch(self) -> Optional[tuple[ArticleRecord, ...]]:
        self.fetch_count += 1
        try:
            response = await self._client.get(self.url)
            response.raise_for_status()
            index = parse_search_index(response.content)
        except httpx.HTTPError as exc:
            logger.warning(f"Error loading search index from {self.url}: {exc}")
            return None
        except ValidationError as exc:
            logger.warning(f"Malformed search index at {self.url}: {exc.error_count()} errors")
            return None
        logger.info(f"Loaded search index: {len(index)} articles")
        return index
