from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from markupsafe import Markup

from .config import SiteConfig
from .loader import IndexLoader
from .ranker import MIN_QUERY_LENGTH, search
from .render import render
from .timers import CancellableTimer

logger = logging.getLogger(__name__)

LOADING_HTML = Markup('<div class="search-loading">Searching...</div>')
ERROR_HTML = Markup('<div class="search-error">Search unavailable</div>')


@dataclass
class ResultsPanel:
    """State of the results container under the search input."""

    html: Markup = Markup("")
    active: bool = False
    query: str = ""


class SearchBox:
    """Debounced search-as-you-type feeding a single results panel.

    Each run takes a request token; a run whose token has been superseded by
    the time its index load resolves is dropped, so the latest input wins.
    """

    def __init__(self, loader: IndexLoader, config: SiteConfig, panel: Optional[ResultsPanel] = None) -> None:
        self.loader = loader
        self.config = config
        self.panel = panel or ResultsPanel()
        self._debounce = CancellableTimer("search-debounce")
        self._token = 0
        self._tasks: set[asyncio.Task] = set()

    def on_input(self, value: str) -> None:
        self._debounce.arm(self.config.debounce_delay, self.run, value)

    def on_focus(self, value: str) -> asyncio.Task:
        task = asyncio.ensure_future(self.run(value))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def dismiss(self) -> None:
        self.panel.active = False

    async def run(self, value: str) -> None:
        self._token += 1
        token = self._token
        query = (value or "").strip()
        self.panel.query = query

        if len(query) < MIN_QUERY_LENGTH:
            self.panel.html = Markup("")
            self.panel.active = False
            return

        self.panel.html = LOADING_HTML
        self.panel.active = True
        try:
            index = await self.loader.load()
            if token != self._token:
                logger.debug(f"Dropping superseded search for {query!r}")
                return
            results = search(query, index, self.config.max_results)
            self.panel.html = render(results, query, self.config.pages_path).to_html()
        except Exception:
            logger.exception(f"Search failed for {query!r}")
            if token == self._token:
                self.panel.html = ERROR_HTML

    async def drain(self) -> None:
        await self._debounce.drain()
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        await self._debounce.close()
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
