from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel

UNTITLED = "untitled"

REMOTE_READER = "remote-reader"
LOCAL_PARSER = "local-parser"
BROWSER = "browser"

TIER_METHODS = {1: REMOTE_READER, 2: LOCAL_PARSER, 3: BROWSER}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class FetchMetadata:
    """
    Provenance of a FetchResult.

    Fields:
        url            : The URL that was requested.
        fetched_at     : ISO-8601 UTC timestamp of when the content was produced.
        content_length : Length of the content in characters.
        method         : Tier that produced the content: "remote-reader",
                         "local-parser" or "browser".
    """
    url: str
    fetched_at: str
    content_length: int
    method: str


@dataclass
class FetchResult:
    """
    Normalized per-URL result shared by all three scrapers.

    Build it with FetchResult.build() so content_length always matches content.
    """
    title: str
    content: str
    metadata: FetchMetadata

    @classmethod
    def build(cls, url: str, title: str | None, content: str, method: str) -> "FetchResult":
        title = (title or "").strip() or UNTITLED
        return cls(
            title=title,
            content=content,
            metadata=FetchMetadata(
                url=url,
                fetched_at=utc_now_iso(),
                content_length=len(content),
                method=method,
            ),
        )


@dataclass(frozen=True)
class EscalationSignal:
    message: str
    status_code: int | None = None
    body: str | None = None


@dataclass
class TierFailure:
    """A captured tier failure, kept until the cascade decides what to do next."""
    tier: str
    message: str
    status_code: int | None = None
    body: str | None = None

    def signal(self) -> EscalationSignal:
        return EscalationSignal(self.message, self.status_code, self.body)


@dataclass
class BatchSuccess:
    result: FetchResult
    ok: bool = field(default=True, init=False)


@dataclass
class BatchFailure:
    reason: str
    ok: bool = field(default=False, init=False)


BatchItemOutcome = BatchSuccess | BatchFailure


class FetchOptions(BaseModel):
    prefer_jina: bool = True
    force_tier: Literal[1, 2, 3] | None = None
