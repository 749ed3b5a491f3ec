"""Per-page context object tying the client components together.

A ``WikiSession`` replaces module-level state: it owns the index cache, the
popover slot, the timers and the HTTP client for one page view. Event
adapters (browser bridge, widget toolkit, test driver) call its ``on_*`` and
``handle_*`` methods; everything else is reachable through the attributes.
"""

from __future__ import annotations

import logging
import random
from typing import Optional, Protocol

import httpx

from .config import PAGE_SUFFIX, SiteConfig
from .loader import IndexLoader
from .models import ScoredResult, SearchIndex
from .preview import HeadlessSurface, LinkTarget, PopoverSurface, PreviewController
from .random_nav import RandomNavigator
from .ranker import search
from .search_box import SearchBox

logger = logging.getLogger(__name__)


class Host(Protocol):
    """Page-level side effects the core cannot perform itself."""

    def navigate(self, url: str) -> None: ...

    def notify(self, message: str) -> None: ...

    def focus_search(self) -> None: ...


class HeadlessHost:
    """Records side effects instead of performing them."""

    def __init__(self) -> None:
        self.navigations: list[str] = []
        self.notices: list[str] = []
        self.focus_requests = 0

    def navigate(self, url: str) -> None:
        self.navigations.append(url)

    def notify(self, message: str) -> None:
        self.notices.append(message)

    def focus_search(self) -> None:
        self.focus_requests += 1


class WikiSession:
    def __init__(
        self,
        config: SiteConfig,
        host: Optional[Host] = None,
        client: Optional[httpx.AsyncClient] = None,
        surface: Optional[PopoverSurface] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self.host = host or HeadlessHost()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=10.0, follow_redirects=True)
        self.loader = IndexLoader(self.client, config.search_index_url)
        self.preview = PreviewController(self.client, config, surface or HeadlessSurface())
        self.random = RandomNavigator(
            self.client,
            config,
            self.loader,
            navigate=self.host.navigate,
            notify=self.host.notify,
            rng=rng,
        )
        self.search_box = SearchBox(self.loader, config)
        logger.debug(f"Session started for {config.page_url}")

    async def __aenter__(self) -> "WikiSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # Entry points for external callers

    def search(self, query: str, index: SearchIndex) -> list[ScoredResult]:
        return search(query, index, self.config.max_results)

    async def load_index(self) -> SearchIndex:
        return await self.loader.load()

    async def navigate_random(self) -> Optional[str]:
        return await self.random.navigate()

    # Event adapter

    def on_input(self, value: str) -> None:
        self.search_box.on_input(value)

    def on_focus(self, value: str) -> None:
        self.search_box.on_focus(value)

    def on_link_enter(self, link: LinkTarget) -> None:
        self.preview.hover_enter(link)

    def on_link_leave(self, link: LinkTarget) -> None:
        if link.href.endswith(PAGE_SUFFIX):
            self.preview.link_leave()

    def on_popover_enter(self) -> None:
        self.preview.popover_enter()

    def on_popover_leave(self) -> None:
        self.preview.popover_leave()

    def handle_click(self, inside_search: bool) -> None:
        if not inside_search:
            self.search_box.dismiss()

    def handle_key(self, key: str, ctrl: bool = False, meta: bool = False) -> None:
        if key == "Escape":
            self.preview.hide()
            self.search_box.dismiss()
        if (ctrl or meta) and key == "k":
            self.host.focus_search()

    async def drain(self) -> None:
        """Let fired timers and running searches finish."""
        await self.search_box.drain()
        await self.preview.drain()

    async def aclose(self) -> None:
        await self.search_box.aclose()
        await self.preview.aclose()
        if self._owns_client:
            await self.client.aclose()
        logger.debug(f"Session closed for {self.config.page_url}")
