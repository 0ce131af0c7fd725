import asyncio
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .browser import BrowserManager
from .content import extract_markdown
from .errors import ExtractionError, FetchTimeoutError
from .models import BROWSER, UNTITLED, FetchResult
from .settings import ReaderConfig

BROWSER_EXTRA_NOISE = [".social-share"]


class BrowserScraper:
    """
    Heavyweight JS-enabled fetcher using Playwright.

    - Shares one browser (owned by BrowserManager) across all calls
    - Opens one page per fetch and always closes it, never the browser
    - Desktop viewport, locale header, heavy-resource blocking
    - Waits for DOMContentLoaded, then a fixed settle delay for client rendering
    """

    name = BROWSER

    def __init__(self, manager: BrowserManager, config: ReaderConfig):
        self.manager = manager
        self.config = config

    async def _route_handler(self, route):
        if route.request.resource_type in self.config.browser_blocked_resources:
            await route.abort()
        else:
            await route.continue_()

    async def fetch(self, url: str) -> FetchResult:
        logger.debug("[browser] fetching {}", url)
        browser = await self.manager.acquire()
        page = None

        try:
            page = await browser.new_page(
                viewport={
                    "width": self.config.browser_viewport_width,
                    "height": self.config.browser_viewport_height,
                },
                locale=self.config.browser_locale,
                extra_http_headers={"Accept-Language": f"{self.config.browser_locale},en;q=0.9"},
            )
            await page.route("**/*", self._route_handler)
            await page.goto(url, timeout=self.config.browser_timeout_ms, wait_until="domcontentloaded")
            await asyncio.sleep(self.config.browser_settle_s)

            title = (await page.title() or "").strip() or UNTITLED
            html = await page.content()
            _, markdown = extract_markdown(html, extra_noise=BROWSER_EXTRA_NOISE)
            return FetchResult.build(url, title, markdown, self.name)

        except PlaywrightTimeoutError as e:
            raise FetchTimeoutError(
                f"Browser navigation timed out after {self.config.browser_timeout_ms / 1000:g}s",
                tier=self.name,
            ) from e
        except PlaywrightError as e:
            raise ExtractionError(f"Browser fetch failed: {e}", tier=self.name) from e
        except Exception as e:
            raise ExtractionError(f"Browser extraction failed: {e}", tier=self.name) from e

        finally:
            if page is not None:
                await page.close()
