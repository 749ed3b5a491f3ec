"""Hover-intent page previews.

One ``PreviewController`` per session owns the single popover slot and the
single pending show timer. A hover session moves IDLE -> PENDING -> SHOWN and
back to IDLE on hide; hiding while PENDING abandons the session.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol

import httpx

from .config import PAGE_SUFFIX, SiteConfig
from .timers import CancellableTimer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rect:
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float
    scroll_y: float = 0


@dataclass(frozen=True)
class LinkTarget:
    href: str
    rect: Rect
    inside_popover: bool = False

    @property
    def filename(self) -> str:
        return self.href.split("?", 1)[0].split("#", 1)[0].rsplit("/", 1)[-1]


@dataclass
class Popover:
    html: str
    link: LinkTarget
    size: Size = field(default_factory=lambda: Size(0, 0))
    left: float = 0
    top: float = 0
    hovered: bool = False


class PopoverSurface(Protocol):
    """Where popovers live: a browser document, a widget tree, a test double."""

    def viewport(self) -> Viewport: ...

    def measure(self, popover: Popover) -> Size: ...

    def attach(self, popover: Popover) -> None: ...

    def detach(self, popover: Popover) -> None: ...


class PreviewState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SHOWN = "shown"


def compute_position(
    link: Rect,
    size: Size,
    viewport: Viewport,
    gap: int = 8,
    margin: int = 20,
    min_offset: int = 10,
) -> tuple[float, float]:
    """Place a popover below-left of ``link``, flipping above near the bottom."""
    left = link.left
    top = link.bottom + gap

    if left + size.width > viewport.width - margin:
        left = viewport.width - size.width - margin
    if top + size.height > viewport.height - margin:
        top = link.top - size.height - gap

    return max(min_offset, left), max(min_offset, top + viewport.scroll_y)


class PreviewController:
    def __init__(self, client: httpx.AsyncClient, config: SiteConfig, surface: PopoverSurface) -> None:
        self._client = client
        self.config = config
        self.surface = surface
        self.current: Optional[Popover] = None
        self._show_timer = CancellableTimer("preview-show")
        self._hide_timer = CancellableTimer("preview-hide")
        self._generation = 0
        self._loading: Optional[int] = None

    @property
    def state(self) -> PreviewState:
        if self.current is not None:
            return PreviewState.SHOWN
        if self._show_timer.pending or self._loading == self._generation:
            return PreviewState.PENDING
        return PreviewState.IDLE

    @staticmethod
    def qualifies(link: LinkTarget) -> bool:
        return bool(link.href) and link.href.endswith(PAGE_SUFFIX) and not link.inside_popover

    def hover_enter(self, link: LinkTarget) -> bool:
        """Arm the show timer for ``link``; returns False for links without previews."""
        if not self.qualifies(link):
            return False
        self._hide_timer.cancel()
        self._generation += 1
        self._show_timer.arm(self.config.preview_delay, self._fire, link, self._generation)
        return True

    def link_leave(self) -> None:
        """Hide after a short grace period unless the pointer reached the popover."""
        self._hide_timer.arm(self.config.hide_grace, self._grace_expired)

    def popover_enter(self) -> None:
        self._hide_timer.cancel()
        if self.current is not None:
            self.current.hovered = True

    def popover_leave(self) -> None:
        self.hide()

    def hide(self) -> None:
        self._generation += 1
        self._show_timer.cancel()
        self._hide_timer.cancel()
        if self.current is not None:
            self.surface.detach(self.current)
            self.current = None

    def _grace_expired(self) -> None:
        if self.current is not None and self.current.hovered:
            return
        self.hide()

    async def _fire(self, link: LinkTarget, generation: int) -> None:
        url = self.config.fragment_url_for(link.filename)
        self._loading = generation
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            html = response.text
        except httpx.HTTPError as exc:
            logger.warning(f"Error loading preview {url}: {exc}")
            return
        finally:
            if self._loading == generation:
                self._loading = None

        if generation != self._generation:
            logger.debug(f"Discarding stale preview for {link.href}")
            return
        self.show(html, link)

    def show(self, html: str, link: LinkTarget) -> Popover:
        """Replace any shown popover with one for ``link`` and position it."""
        if self.current is not None:
            self.surface.detach(self.current)
            self.current = None

        popover = Popover(html=html, link=link)
        self.surface.attach(popover)
        self.current = popover

        popover.size = self.surface.measure(popover)
        popover.left, popover.top = compute_position(
            link.rect,
            popover.size,
            self.surface.viewport(),
            gap=self.config.popover_gap,
            margin=self.config.edge_margin,
            min_offset=self.config.min_offset,
        )
        return popover

    async def drain(self) -> None:
        await self._show_timer.drain()

    async def aclose(self) -> None:
        self.hide()
        await self._show_timer.close()
        await self._hide_timer.close()


class HeadlessSurface:
    """In-memory popover surface with fixed geometry."""

    def __init__(
        self,
        viewport: Viewport = Viewport(1024, 768),
        popover_size: Size = Size(320, 200),
    ) -> None:
        self._viewport = viewport
        self.popover_size = popover_size
        self.attached: list[Popover] = []
        self.max_attached = 0

    def viewport(self) -> Viewport:
        return self._viewport

    def measure(self, popover: Popover) -> Size:
        return self.popover_size

    def attach(self, popover: Popover) -> None:
        self.attached.append(popover)
        self.max_attached = max(self.max_attached, len(self.attached))

    def detach(self, popover: Popover) -> None:
        self.attached.remove(popover)
