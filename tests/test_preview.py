from __future__ import annotations

import asyncio
from dataclasses import replace

import httpx

from notwiki.client.config import SiteConfig
from notwiki.client.preview import (
    HeadlessSurface,
    LinkTarget,
    PreviewController,
    PreviewState,
    Rect,
    Size,
    Viewport,
    compute_position,
)

CONFIG = SiteConfig.for_page(
    "http://wiki.test/wiki/home.html",
    preview_delay=0.02,
    hide_grace=0.02,
)
LINK_RECT = Rect(left=100, top=100, width=80, height=20)


def link(name: str = "paris.html", **kwargs) -> LinkTarget:
    return LinkTarget(href=f"../pages/{name}", rect=kwargs.pop("rect", LINK_RECT), **kwargs)


def make_controller(delay: float = 0.0, fail: set[str] = frozenset(), config: SiteConfig = CONFIG):
    requested = []

    async def handler(request: httpx.Request) -> httpx.Response:
        requested.append(request.url.path)
        if delay:
            await asyncio.sleep(delay)
        name = request.url.path.rsplit("/", 1)[-1]
        if name in fail:
            return httpx.Response(404)
        return httpx.Response(200, text=f"<p>{name}</p>")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    surface = HeadlessSurface()
    return PreviewController(client, config, surface), surface, requested


async def settle(controller: PreviewController, seconds: float = 0.05) -> None:
    await asyncio.sleep(seconds)
    await controller.drain()


def test_position_defaults_below_left():
    assert compute_position(LINK_RECT, Size(300, 200), Viewport(1024, 768)) == (100, 128)


def test_position_shifts_left_on_right_overflow():
    rect = Rect(left=900, top=100, width=50, height=20)
    assert compute_position(rect, Size(300, 200), Viewport(1024, 768)) == (1024 - 300 - 20, 128)


def test_position_flips_above_on_bottom_overflow():
    rect = Rect(left=100, top=700, width=50, height=20)
    assert compute_position(rect, Size(300, 200), Viewport(1024, 768)) == (100, 700 - 200 - 8)


def test_position_clamps_and_adds_scroll():
    rect = Rect(left=0, top=50, width=50, height=20)
    left, top = compute_position(rect, Size(2000, 900), Viewport(1024, 768, scroll_y=400))
    assert (left, top) == (10, 10)
    assert compute_position(Rect(5, 0, 10, 0), Size(10, 10), Viewport(1024, 768, scroll_y=300)) == (10, 308)


def test_non_qualifying_links_are_ignored():
    async def scenario():
        controller, surface, requested = make_controller()
        assert not controller.hover_enter(LinkTarget("https://example.com/", LINK_RECT))
        assert not controller.hover_enter(link(inside_popover=True))
        await settle(controller)
        return controller, requested

    controller, requested = asyncio.run(scenario())
    assert controller.state is PreviewState.IDLE
    assert requested == []


def test_hover_shows_positioned_popover_after_delay():
    async def scenario():
        controller, surface, requested = make_controller()
        controller.hover_enter(link())
        assert controller.state is PreviewState.PENDING
        await settle(controller)
        return controller, surface, requested

    controller, surface, requested = asyncio.run(scenario())
    assert requested == ["/fragments/paris.html"]
    assert controller.state is PreviewState.SHOWN
    assert len(surface.attached) == 1
    popover = surface.attached[0]
    assert popover.html == "<p>paris.html</p>"
    assert (popover.left, popover.top) == (100, 128)


def test_fetch_failure_shows_nothing():
    async def scenario():
        controller, surface, _ = make_controller(fail={"paris.html"})
        controller.hover_enter(link())
        await settle(controller)
        return controller, surface

    controller, surface = asyncio.run(scenario())
    assert controller.state is PreviewState.IDLE
    assert surface.attached == []


def test_rehover_cancels_previous_timer():
    async def scenario():
        controller, surface, requested = make_controller()
        controller.hover_enter(link("a.html"))
        controller.hover_enter(link("b.html"))
        await settle(controller)
        return surface, requested

    surface, requested = asyncio.run(scenario())
    assert requested == ["/fragments/b.html"]
    assert [p.html for p in surface.attached] == ["<p>b.html</p>"]


def test_hidden_before_fetch_returns_is_discarded():
    async def scenario():
        controller, surface, requested = make_controller(delay=0.05)
        controller.hover_enter(link())
        await asyncio.sleep(0.03)
        assert requested == ["/fragments/paris.html"]
        controller.hide()
        assert controller.state is PreviewState.IDLE
        await settle(controller, 0.06)
        return controller, surface

    controller, surface = asyncio.run(scenario())
    assert controller.state is PreviewState.IDLE
    assert surface.attached == []


def test_rapid_hover_sequences_keep_at_most_one_popover():
    async def scenario():
        controller, surface, _ = make_controller(delay=0.005)
        names = [f"p{n}.html" for n in range(8)]
        for n, name in enumerate(names):
            controller.hover_enter(link(name))
            await asyncio.sleep(0.01 if n % 2 else 0.03)
            if n % 3 == 0:
                controller.link_leave()
        await settle(controller, 0.1)
        return surface

    surface = asyncio.run(scenario())
    assert surface.max_attached == 1
    assert len(surface.attached) <= 1


def test_leaving_link_hides_unless_popover_hovered():
    async def scenario():
        controller, surface, _ = make_controller()
        controller.hover_enter(link())
        await settle(controller)
        controller.link_leave()
        controller.popover_enter()
        await asyncio.sleep(0.05)
        kept = controller.state
        controller.popover_leave()
        return kept, controller, surface

    kept, controller, surface = asyncio.run(scenario())
    assert kept is PreviewState.SHOWN
    assert controller.state is PreviewState.IDLE
    assert surface.attached == []


def test_leaving_link_without_reaching_popover_hides():
    async def scenario():
        controller, surface, _ = make_controller()
        controller.hover_enter(link())
        await settle(controller)
        controller.link_leave()
        await asyncio.sleep(0.05)
        return controller, surface

    controller, surface = asyncio.run(scenario())
    assert controller.state is PreviewState.IDLE
    assert surface.attached == []


def test_leaving_link_while_pending_cancels_preview():
    async def scenario():
        controller, surface, requested = make_controller(config=replace(CONFIG, hide_grace=0.005))
        controller.hover_enter(link())
        controller.link_leave()
        await settle(controller)
        return controller, requested

    controller, requested = asyncio.run(scenario())
    assert controller.state is PreviewState.IDLE
    assert requested == []


def test_show_replaces_existing_popover():
    async def scenario():
        controller, surface, _ = make_controller()
        controller.show("<p>one</p>", link("one.html"))
        controller.show("<p>two</p>", link("two.html"))
        return controller, surface

    controller, surface = asyncio.run(scenario())
    assert [p.html for p in surface.attached] == ["<p>two</p>"]
    assert controller.current is surface.attached[0]


def test_colon_in_filename_stays_under_fragments():
    async def scenario():
        controller, surface, requested = make_controller()
        controller.hover_enter(link("Talk:Paris.html"))
        await settle(controller)
        return controller, surface, requested

    controller, surface, requested = asyncio.run(scenario())
    assert requested == ["/fragments/Talk:Paris.html"]
    assert controller.state is PreviewState.SHOWN
    assert [p.html for p in surface.attached] == ["<p>Talk:Paris.html</p>"]
