"""
Policy module: decides whether failed cheap fetches should escalate to the
headless browser.

The logic is:
- explicit (one declarative rule table)
- case-insensitive substring matching
- easily auditable: each rule can be evaluated on its own
"""

from dataclasses import dataclass
from typing import Iterable

from .models import EscalationSignal


@dataclass(frozen=True)
class EscalationRule:
    """
    One row of the rule table.

    source   : which field of the signal is inspected: "status", "message" or "body"
    statuses : status codes that match (status rules only)
    keywords : lowercase substrings that match (message/body rules)
    """
    name: str
    source: str
    statuses: frozenset[int] = frozenset()
    keywords: tuple[str, ...] = ()

    def matches(self, signal: EscalationSignal) -> bool:
        if self.source == "status":
            return signal.status_code is not None and signal.status_code in self.statuses

        text = signal.message if self.source == "message" else signal.body
        if not text:
            return False
        lower = text.lower()
        return any(k in lower for k in self.keywords)


ESCALATION_RULES: tuple[EscalationRule, ...] = (
    EscalationRule(
        name="blocking-status",
        source="status",
        statuses=frozenset({403, 429, 503, 520, 521, 522, 523, 524}),
    ),
    EscalationRule(
        name="blocking-message",
        source="message",
        keywords=(
            "cloudflare",
            "access denied",
            "forbidden",
            "captcha",
            "rate limit",
            "robot",
            "security",
            "blocked",
            "protection",
            "verification required",
        ),
    ),
    EscalationRule(
        name="challenge-page",
        source="body",
        keywords=(
            "cloudflare",
            "ray id",
            "access denied",
            "security check",
            "human verification",
            "captcha",
        ),
    ),
)


def matching_rules(
    signals: Iterable[EscalationSignal],
    rules: Iterable[EscalationRule] = ESCALATION_RULES,
) -> list[str]:
    """Names of the rules hit by any signal, in table order. Useful for logging."""
    signals = list(signals)
    return [r.name for r in rules if any(r.matches(s) for s in signals)]


def should_escalate(
    signals: Iterable[EscalationSignal],
    rules: Iterable[EscalationRule] = ESCALATION_RULES,
) -> bool:
    return bool(matching_rules(signals, rules))
