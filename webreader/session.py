import aiohttp

from . import batch
from .browser import BrowserManager
from .browser_scraper import BrowserScraper
from .cascade import CascadeFetcher
from .errors import ValidationError
from .http_scraper import HttpScraper
from .models import BatchItemOutcome, FetchOptions, FetchResult
from .reader_scraper import ReaderScraper
from .settings import DEFAULT_READER_CONFIG, ReaderConfig
from .utils import validate_url


class ReaderSession:
    """
    Owns everything a fetch needs: the shared HTTP session, the browser
    manager and the three tier scrapers.

    Use as an async context manager, or call close() on shutdown:

        async with ReaderSession() as reader:
            result = await reader.fetch_single("https://example.com")
    """

    def __init__(
        self,
        config: ReaderConfig | None = None,
        http_session: aiohttp.ClientSession | None = None,
        browser_manager: BrowserManager | None = None,
    ):
        self.config = config or DEFAULT_READER_CONFIG
        self._http_session = http_session
        self._owns_http_session = http_session is None
        self.browser_manager = browser_manager or BrowserManager(self.config)
        self._cascade: CascadeFetcher | None = None

    @property
    def http_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self._http_session

    @property
    def cascade(self) -> CascadeFetcher:
        if self._cascade is None:
            self._cascade = CascadeFetcher(
                reader=ReaderScraper(self.http_session, self.config),
                local=HttpScraper(self.http_session, self.config),
                browser=BrowserScraper(self.browser_manager, self.config),
            )
        return self._cascade

    async def fetch_single(self, url: str, prefer_jina: bool = True, force_tier: int | None = None) -> FetchResult:
        """
        Fetch one URL through the cascade, or through exactly one tier when
        force_tier is 1, 2 or 3.
        """
        try:
            options = FetchOptions(prefer_jina=prefer_jina, force_tier=force_tier)
        except ValueError as e:
            raise ValidationError(f"Invalid fetch options: {e}") from e
        validate_url(url)

        if options.force_tier is not None:
            return await self.cascade.fetch_tier(url, options.force_tier)
        return await self.cascade.fetch(url, prefer_jina=options.prefer_jina)

    async def fetch_tier(self, url: str, tier: int) -> FetchResult:
        return await self.fetch_single(url, force_tier=tier)

    async def fetch_batch(self, urls: list[str], prefer_jina: bool = True) -> list[BatchItemOutcome]:
        return await batch.fetch_batch(self.cascade, urls, prefer_jina=prefer_jina)

    async def close(self) -> None:
        await self.browser_manager.close()
        if self._owns_http_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._cascade = None

    async def __aenter__(self) -> "ReaderSession":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
