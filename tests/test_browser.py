import asyncio
import gc
import signal

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from fakes import FakeBrowser, FakeChromium, FakeDriver, FakePage, FakeRoute
from webreader import browser as browser_module
from webreader.browser import BrowserManager, install_shutdown_hook
from webreader.browser_scraper import BrowserScraper
from webreader.cascade import CascadeFetcher
from webreader.errors import (
    BrowserLaunchError,
    EscalationExhaustedError,
    ExtractionError,
    FetchTimeoutError,
    UpstreamError,
)
from webreader.settings import ReaderConfig

URL = "https://example.com/app"

RENDERED = """
<html><head><title>ignored</title></head><body>
<header>logo</header>
<div role="main"><h2>Rendered</h2><p>Client side text</p>
<div class="social-share">Share on X</div></div>
</body></html>
"""


def make_config(**overrides) -> ReaderConfig:
    return ReaderConfig(browser_settle_s=0, **overrides)


def make_manager(page_factory=FakePage, new_page_error=None, start_error=None, **chromium_kwargs):
    chromium = FakeChromium(
        browser_factory=lambda: FakeBrowser(page_factory, new_page_error=new_page_error),
        **chromium_kwargs,
    )
    driver = FakeDriver(chromium, start_error=start_error)
    return BrowserManager(make_config(), driver_factory=driver), driver


# ---------- lifecycle ----------

@pytest.mark.asyncio
async def test_acquire_launches_once_and_reuses():
    manager, driver = make_manager()

    first = await manager.acquire()
    second = await manager.acquire()

    assert first is second
    assert manager.launch_count == 1
    assert len(driver.chromium.launch_calls) == 1


@pytest.mark.asyncio
async def test_launch_is_headless_without_sandbox():
    manager, driver = make_manager()

    await manager.acquire()

    [options] = driver.chromium.launch_calls
    assert options["headless"] is True
    assert "--no-sandbox" in options["args"]
    assert "proxy" not in options


@pytest.mark.asyncio
async def test_concurrent_first_acquire_is_single_flight():
    manager, driver = make_manager(delay=0.01)

    browsers = await asyncio.gather(*(manager.acquire() for _ in range(5)))

    assert all(b is browsers[0] for b in browsers)
    assert manager.launch_count == 1
    assert len(driver.chromium.launch_calls) == 1


@pytest.mark.asyncio
async def test_close_releases_and_next_acquire_relaunches():
    manager, driver = make_manager()
    browser = await manager.acquire()

    await manager.close()

    assert browser.closed
    assert driver.started[0].stopped
    assert not manager.is_running

    again = await manager.acquire()
    assert again is not browser
    assert manager.launch_count == 2


@pytest.mark.asyncio
async def test_close_without_browser_is_noop():
    manager, driver = make_manager()
    await manager.close()
    await manager.release()
    assert driver.started == []


@pytest.mark.asyncio
async def test_launch_failure_raises_and_stops_driver():
    manager, driver = make_manager(launch_error=RuntimeError("missing executable"))

    with pytest.raises(BrowserLaunchError, match="missing executable"):
        await manager.acquire()

    assert driver.started[0].stopped
    assert not manager.is_running
    assert manager.launch_count == 0


@pytest.mark.asyncio
async def test_shutdown_hook_installs_once():
    manager, _ = make_manager()
    loop = asyncio.get_running_loop()
    try:
        assert install_shutdown_hook(manager, loop) is True
        assert install_shutdown_hook(manager, loop) is False
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)


# ---------- browser tier ----------

@pytest.mark.asyncio
async def test_browser_fetch_renders_and_extracts():
    page = FakePage(html=RENDERED, title="Rendered App")
    manager, _ = make_manager(page_factory=lambda: page)

    result = await BrowserScraper(manager, make_config()).fetch(URL)

    assert result.title == "Rendered App"
    assert result.content == "## Rendered\n\nClient side text"
    assert result.metadata.method == "browser"
    assert result.metadata.content_length == len(result.content)
    assert page.closed
    assert manager.is_running


@pytest.mark.asyncio
async def test_browser_page_setup():
    page = FakePage(html=RENDERED, title="t")
    manager, driver = make_manager(page_factory=lambda: page)

    await BrowserScraper(manager, make_config()).fetch(URL)

    browser = driver.chromium.browsers[0]
    [options] = browser.page_options
    assert options["viewport"] == {"width": 1920, "height": 1080}
    assert options["extra_http_headers"]["Accept-Language"].startswith("en-US")
    [(url, kwargs)] = page.goto_calls
    assert url == URL
    assert kwargs == {"timeout": 30_000, "wait_until": "domcontentloaded"}


@pytest.mark.asyncio
async def test_browser_blocks_heavy_resources_only():
    page = FakePage(html=RENDERED, title="t")
    manager, _ = make_manager(page_factory=lambda: page)
    await BrowserScraper(manager, make_config()).fetch(URL)

    [(pattern, handler)] = page.route_handlers
    assert pattern == "**/*"

    for kind in ("image", "stylesheet", "font", "media"):
        route = FakeRoute(kind)
        await handler(route)
        assert route.aborted and not route.continued, kind

    for kind in ("document", "script", "xhr", "fetch"):
        route = FakeRoute(kind)
        await handler(route)
        assert route.continued and not route.aborted, kind


@pytest.mark.asyncio
async def test_browser_empty_title_is_untitled():
    page = FakePage(html="<body><p>x</p></body>", title="")
    manager, _ = make_manager(page_factory=lambda: page)
    result = await BrowserScraper(manager, make_config()).fetch(URL)
    assert result.title == "untitled"


@pytest.mark.asyncio
async def test_navigation_timeout_closes_page_keeps_browser():
    page = FakePage(goto_error=PlaywrightTimeoutError("Timeout 30000ms exceeded"))
    manager, _ = make_manager(page_factory=lambda: page)

    with pytest.raises(FetchTimeoutError) as info:
        await BrowserScraper(manager, make_config()).fetch(URL)

    assert info.value.tier == "browser"
    assert page.closed
    assert manager.is_running


@pytest.mark.asyncio
async def test_navigation_error_is_extraction_error():
    page = FakePage(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
    manager, _ = make_manager(page_factory=lambda: page)

    with pytest.raises(ExtractionError, match="ERR_NAME_NOT_RESOLVED"):
        await BrowserScraper(manager, make_config()).fetch(URL)

    assert page.closed


@pytest.mark.asyncio
async def test_repeated_browser_fetches_share_one_launch():
    manager, driver = make_manager(page_factory=lambda: FakePage(html=RENDERED, title="t"))
    scraper = BrowserScraper(manager, make_config())

    await scraper.fetch(URL)
    await scraper.fetch(URL)

    assert manager.launch_count == 1
    browser = driver.chromium.browsers[0]
    assert len(browser.pages) == 2
    assert all(p.closed for p in browser.pages)


# ---------- launch and reconnect edge cases ----------

@pytest.mark.asyncio
async def test_driver_start_failure_is_launch_error():
    manager, driver = make_manager(start_error=RuntimeError("driver binary not found"))

    with pytest.raises(BrowserLaunchError, match="driver binary not found") as info:
        await manager.acquire()

    assert info.value.tier == "browser"
    assert driver.chromium.launch_calls == []
    assert manager.launch_count == 0
    assert not manager.is_running


@pytest.mark.asyncio
async def test_disconnected_browser_is_relaunched():
    manager, driver = make_manager()
    dead = await manager.acquire()

    dead.connected = False
    assert not manager.is_running

    fresh = await manager.acquire()

    assert fresh is not dead
    assert fresh.is_connected()
    assert manager.launch_count == 2
    assert driver.started[0].stopped
    assert not driver.started[1].stopped


@pytest.mark.asyncio
async def test_browser_fetch_after_crash_uses_new_browser():
    manager, driver = make_manager(page_factory=lambda: FakePage(html=RENDERED, title="t"))
    scraper = BrowserScraper(manager, make_config())

    await scraper.fetch(URL)
    driver.chromium.browsers[0].connected = False
    result = await scraper.fetch(URL)

    assert result.metadata.method == "browser"
    assert len(driver.chromium.browsers) == 2
    assert len(driver.chromium.browsers[1].pages) == 1


@pytest.mark.asyncio
async def test_shutdown_hook_does_not_pin_collected_resources():
    loop = asyncio.get_running_loop()
    manager, _ = make_manager()
    try:
        assert install_shutdown_hook(manager, loop) is True
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)

    hooked_before = len(browser_module._HOOKED)
    del manager
    gc.collect()
    assert len(browser_module._HOOKED) < hooked_before

    other, _ = make_manager()
    try:
        assert install_shutdown_hook(other, loop) is True
        assert other in browser_module._HOOKED
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        loop.remove_signal_handler(signal.SIGTERM)


# ---------- page creation failures ----------

@pytest.mark.asyncio
async def test_new_page_failure_is_extraction_error():
    manager, driver = make_manager(
        new_page_error=PlaywrightError("Target page, context or browser has been closed"),
    )

    with pytest.raises(ExtractionError, match="has been closed") as info:
        await BrowserScraper(manager, make_config()).fetch(URL)

    assert info.value.tier == "browser"
    assert driver.chromium.browsers[0].pages == []
    assert manager.is_running


class FailingScraper:
    def __init__(self, name: str, error: Exception):
        self.name = name
        self.error = error

    async def fetch(self, url: str):
        raise self.error


@pytest.mark.asyncio
async def test_new_page_failure_is_aggregated_by_cascade():
    manager, _ = make_manager(
        new_page_error=PlaywrightError("Target page, context or browser has been closed"),
    )
    cascade = CascadeFetcher(
        FailingScraper("remote-reader", UpstreamError("Remote reader returned HTTP 403", 403, tier="remote-reader")),
        FailingScraper("local-parser", UpstreamError("Origin returned HTTP 403", 403, tier="local-parser")),
        BrowserScraper(manager, make_config()),
    )

    with pytest.raises(EscalationExhaustedError) as info:
        await cascade.fetch(URL)

    assert [f.tier for f in info.value.failures] == ["remote-reader", "local-parser", "browser"]
    assert "has been closed" in str(info.value)
