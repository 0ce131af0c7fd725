import asyncio

from loguru import logger

from .cascade import CascadeFetcher
from .errors import ValidationError
from .models import BatchFailure, BatchItemOutcome, BatchSuccess
from .utils import find_invalid_urls

MAX_BATCH_URLS = 10


def validate_batch(urls: list[str]) -> None:
    """
    Reject the whole batch before any network activity.

    Raises ValidationError for an empty or oversize batch, or naming every
    invalid entry.
    """
    if not urls:
        raise ValidationError("Batch must contain at least one URL")
    if len(urls) > MAX_BATCH_URLS:
        raise ValidationError(f"Batch accepts at most {MAX_BATCH_URLS} URLs, got {len(urls)}")
    invalid = find_invalid_urls(urls)
    if invalid:
        raise ValidationError(f"Invalid URLs: {', '.join(map(str, invalid))}", invalid_urls=invalid)


async def _run_one(cascade: CascadeFetcher, url: str, prefer_jina: bool) -> BatchItemOutcome:
    try:
        return BatchSuccess(await cascade.fetch(url, prefer_jina=prefer_jina))
    except Exception as e:
        # one item's failure never aborts its siblings
        logger.warning("[batch] {} failed: {}", url, e)
        return BatchFailure(str(e))


async def fetch_batch(cascade: CascadeFetcher, urls: list[str], prefer_jina: bool = True) -> list[BatchItemOutcome]:
    """
    Run the cascade concurrently for every URL.

    Returns one outcome per input URL, in input order regardless of which
    fetch finished first.
    """
    validate_batch(urls)
    logger.debug("[batch] dispatching {} URLs", len(urls))
    return list(await asyncio.gather(*(_run_one(cascade, u, prefer_jina) for u in urls)))
