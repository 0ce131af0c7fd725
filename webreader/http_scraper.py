import asyncio
import aiohttp
from loguru import logger

from .content import extract_markdown
from .errors import ExtractionError, FetchError, FetchTimeoutError, UpstreamError
from .models import LOCAL_PARSER, FetchResult
from .settings import ReaderConfig
from .utils import body_snippet


DEFAULT_HTTP_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


async def get_text(
    session: aiohttp.ClientSession,
    url: str,
    *,
    headers: dict,
    config: ReaderConfig,
    tier: str,
    label: str,
) -> str:
    """
    Single GET with the tier deadline. Returns the decoded body.

    Raises:
        FetchTimeoutError on deadline expiry, UpstreamError on a non-2xx status
        (with status code and body snippet), FetchError on any other transport failure.
    """
    proxy = config.proxy
    timeout = aiohttp.ClientTimeout(total=config.request_timeout_s)

    try:
        async with session.get(
            url, headers=headers, proxy=proxy.url if proxy else None,
            timeout=timeout, allow_redirects=True,
        ) as resp:
            body = await resp.text(errors="replace")
            if not 200 <= resp.status < 300:
                raise UpstreamError(
                    f"{label} returned HTTP {resp.status}",
                    resp.status,
                    tier=tier,
                    body=body_snippet(body, config.body_snippet_bytes),
                )
            return body
    except asyncio.TimeoutError as e:
        raise FetchTimeoutError(
            f"{label} request timed out after {config.request_timeout_s:g}s", tier=tier
        ) from e
    except aiohttp.ClientError as e:
        raise FetchError(f"{label} request failed: {e}", tier=tier) from e


class HttpScraper:
    """
    Local-parser tier: raw HTTP GET + DOM extraction.

    - One attempt, no retries (escalation across tiers is the retry policy)
    - Browser-like User-Agent from ReaderConfig
    - Title from <title>, content root chosen by ordered selectors
    """
    name = LOCAL_PARSER

    def __init__(self, session: aiohttp.ClientSession, config: ReaderConfig):
        self.session = session
        self.config = config

    async def fetch(self, url: str) -> FetchResult:
        logger.debug("[local-parser] fetching {}", url)
        headers = {**DEFAULT_HTTP_HEADERS, "User-Agent": self.config.user_agent}
        html = await get_text(
            self.session, url, headers=headers, config=self.config,
            tier=self.name, label="Origin",
        )

        try:
            title, markdown = extract_markdown(html)
        except Exception as e:
            raise ExtractionError(f"Local parsing failed: {e}", tier=self.name) from e

        return FetchResult.build(url, title, markdown, self.name)
