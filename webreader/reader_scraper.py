import aiohttp
from loguru import logger

from .content import markdown_title
from .http_scraper import get_text
from .models import REMOTE_READER, FetchResult
from .settings import ReaderConfig


class ReaderScraper:
    """
    Remote-reader tier: delegates extraction to a reader service.

    The target URL is appended to the service base URL and the response body
    is already Markdown. The title is the first "# " heading, if any.
    """
    name = REMOTE_READER

    def __init__(self, session: aiohttp.ClientSession, config: ReaderConfig):
        self.session = session
        self.config = config

    def reader_url(self, url: str) -> str:
        return f"{self.config.reader_base_url.rstrip('/')}/{url}"

    def headers(self) -> dict:
        headers = {
            "Accept": self.config.reader_accept,
            "User-Agent": self.config.reader_user_agent,
        }
        if self.config.reader_api_key:
            headers["Authorization"] = f"Bearer {self.config.reader_api_key}"
        return headers

    async def fetch(self, url: str) -> FetchResult:
        logger.debug("[remote-reader] fetching {}", url)
        markdown = await get_text(
            self.session, self.reader_url(url), headers=self.headers(),
            config=self.config, tier=self.name, label="Remote reader",
        )
        return FetchResult.build(url, markdown_title(markdown), markdown, self.name)
