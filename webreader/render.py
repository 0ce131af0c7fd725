from .models import BatchItemOutcome, BatchSuccess, FetchResult


def render_result(result: FetchResult) -> str:
    m = result.metadata
    return (
        f"# {result.title}\n\n"
        f"**URL**: {m.url}\n"
        f"**Fetched at**: {m.fetched_at}\n"
        f"**Content length**: {m.content_length} characters\n"
        f"**Method**: {m.method}\n\n"
        f"---\n\n"
        f"{result.content}"
    )


def render_batch(urls: list[str], outcomes: list[BatchItemOutcome]) -> str:
    """Numbered report with one section per input URL, failures inline."""
    parts = ["# Batch fetch results\n\n"]
    for i, (url, outcome) in enumerate(zip(urls, outcomes), start=1):
        parts.append(f"## {i}. {url}\n\n")
        if isinstance(outcome, BatchSuccess):
            r = outcome.result
            parts.append(f"**Title**: {r.title}\n")
            parts.append(f"**Fetched at**: {r.metadata.fetched_at}\n")
            parts.append(f"**Content length**: {r.metadata.content_length} characters\n")
            parts.append(f"**Method**: {r.metadata.method}\n\n")
            parts.append(f"### Content\n\n{r.content}\n\n")
        else:
            parts.append(f"**Error**: {outcome.reason}\n\n")
        parts.append("---\n\n")
    return "".join(parts)
