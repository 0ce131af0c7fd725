from urllib.parse import urlparse

from .errors import ValidationError

ALLOWED_SCHEMES = {"http", "https"}


def is_valid_url(url: str) -> bool:
    """
    True for absolute http(s) URLs with a host. Syntax only, no network access.
    """
    if not isinstance(url, str) or not url or url != url.strip():
        return False
    if any(ch.isspace() for ch in url):
        return False
    try:
        parsed = urlparse(url)
        # .port raises ValueError on garbage like "http://host:abc"
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in ALLOWED_SCHEMES and bool(parsed.hostname)


def validate_url(url: str) -> str:
    if not is_valid_url(url):
        raise ValidationError(
            f"Invalid URL (only http and https are supported): {url}",
            invalid_urls=[url],
        )
    return url


def find_invalid_urls(urls: list[str]) -> list[str]:
    return [u for u in urls if not is_valid_url(u)]


def body_snippet(body: str | bytes | None, limit: int) -> str | None:
    """
    Truncate a response body for attachment to an error.

    Kept small: the escalation content rule only needs the first few KB.
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        body = body[:limit].decode("utf-8", "ignore")
    return body[:limit]
