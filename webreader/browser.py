"""
Lifecycle of the one shared headless browser.

The browser is expensive, so it is launched lazily on the first browser-tier
fetch, reused by every later fetch, and closed exactly once on shutdown.
Concurrent first calls are single-flight: the lock is taken before the
launch and the existence check is repeated inside it.
"""

import asyncio
import signal
import weakref
from typing import Any, Callable

from loguru import logger
from playwright.async_api import async_playwright

from .errors import BrowserLaunchError
from .models import BROWSER
from .settings import ReaderConfig


class BrowserManager:
    def __init__(self, config: ReaderConfig, driver_factory: Callable[[], Any] = async_playwright):
        self.config = config
        self._driver_factory = driver_factory
        self._playwright = None
        self._browser = None
        self._lock = asyncio.Lock()
        self.launch_count = 0

    @property
    def is_running(self) -> bool:
        return self._connected()

    def _connected(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def _discard_dead(self) -> None:
        # the engine is gone (crash, OOM kill); only the driver is left to stop
        playwright = self._playwright
        self._browser = None
        self._playwright = None
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.warning("[browser] stopping driver of dead browser failed: {}", e)

    async def acquire(self):
        """Return the shared browser, launching (or relaunching) it if needed."""
        if self._connected():
            return self._browser

        async with self._lock:
            if self._connected():
                return self._browser

            if self._browser is not None:
                logger.warning("[browser] shared browser disconnected, relaunching")
                await self._discard_dead()

            launch_options = {
                "headless": self.config.browser_headless,
                "args": list(self.config.browser_args),
            }
            proxy = self.config.proxy
            if proxy is not None:
                launch_options["proxy"] = proxy.playwright_options()

            logger.info("[browser] launching chromium (headless={})", self.config.browser_headless)
            playwright = None
            try:
                playwright = await self._driver_factory().start()
                self._browser = await playwright.chromium.launch(**launch_options)
            except Exception as e:
                if playwright is not None:
                    await playwright.stop()
                raise BrowserLaunchError(f"Failed to launch browser: {e}", tier=BROWSER) from e

            self._playwright = playwright
            self.launch_count += 1
            return self._browser

    async def close(self) -> None:
        """Close the browser and stop the driver. No-op when nothing is running."""
        async with self._lock:
            browser, playwright = self._browser, self._playwright
            self._browser = None
            self._playwright = None
            if browser is not None:
                logger.info("[browser] closing chromium")
                await browser.close()
            if playwright is not None:
                await playwright.stop()

    release = close

    async def __aenter__(self) -> "BrowserManager":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


# weak so a collected resource never blocks a new one
_HOOKED = weakref.WeakSet()


def install_shutdown_hook(resource, loop: asyncio.AbstractEventLoop | None = None,
                          signals=(signal.SIGINT, signal.SIGTERM)) -> bool:
    """
    Register SIGINT/SIGTERM handlers that close `resource` and then stop the loop.

    `resource` is anything with an async close(): a BrowserManager or a
    ReaderSession. Installing twice for the same resource is a no-op.
    Returns True if handlers were installed.
    """
    if resource in _HOOKED:
        return False
    loop = loop or asyncio.get_running_loop()

    def _on_signal(sig):
        logger.info("[shutdown] received {}, releasing browser", signal.Signals(sig).name)
        _HOOKED.discard(resource)
        for s in signals:
            loop.remove_signal_handler(s)
        task = loop.create_task(resource.close())
        task.add_done_callback(_stop_loop)

    def _stop_loop(task):
        if not task.cancelled() and task.exception() is not None:
            logger.error("[shutdown] release failed: {}", task.exception())
        loop.stop()

    for sig in signals:
        loop.add_signal_handler(sig, _on_signal, sig)
    _HOOKED.add(resource)
    return True
