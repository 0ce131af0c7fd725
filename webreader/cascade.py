"""
Per-URL cascade across the three tiers.

prefer_jina=True : remote-reader -> local-parser -> (policy) -> browser
prefer_jina=False: local-parser -> (policy) -> browser

Lower-tier failures are captured as TierFailure and only the terminal
outcome leaves fetch(). No tier retries itself.
"""

from typing import Callable, Iterable

from loguru import logger

from .errors import EscalationExhaustedError, FetchError, ValidationError
from .models import EscalationSignal, FetchResult, TierFailure
from .policy import matching_rules, should_escalate


class CascadeFetcher:
    def __init__(
        self,
        reader,
        local,
        browser,
        classifier: Callable[[Iterable[EscalationSignal]], bool] = should_escalate,
    ):
        self.reader = reader
        self.local = local
        self.browser = browser
        self.classifier = classifier

    def scraper_for(self, tier: int):
        scrapers = {1: self.reader, 2: self.local, 3: self.browser}
        if tier not in scrapers:
            raise ValidationError(f"Unknown tier {tier!r}; expected 1, 2 or 3")
        return scrapers[tier]

    async def fetch_tier(self, url: str, tier: int) -> FetchResult:
        """Run exactly one tier. Its failure propagates unwrapped."""
        return await self.scraper_for(tier).fetch(url)

    def _escalate(self, url: str, failures: list[TierFailure]) -> bool:
        signals = [f.signal() for f in failures]
        decision = self.classifier(signals)
        if decision:
            logger.warning("[cascade] escalating {} to browser (rules: {})",
                           url, ", ".join(matching_rules(signals)) or "custom")
        else:
            logger.debug("[cascade] no escalation signal for {}", url)
        return decision

    async def fetch(self, url: str, prefer_jina: bool = True) -> FetchResult:
        if not prefer_jina:
            return await self._fetch_local_first(url)

        failures: list[TierFailure] = []
        for scraper in (self.reader, self.local):
            try:
                return await scraper.fetch(url)
            except FetchError as e:
                failure = e.to_failure(scraper.name)
                logger.warning("[cascade] {} failed for {}: {}", scraper.name, url, failure.message)
                failures.append(failure)

        if not self._escalate(url, failures):
            raise EscalationExhaustedError(failures)

        try:
            return await self.browser.fetch(url)
        except FetchError as e:
            failures.append(e.to_failure(self.browser.name))
            raise EscalationExhaustedError(failures) from e

    async def _fetch_local_first(self, url: str) -> FetchResult:
        try:
            return await self.local.fetch(url)
        except FetchError as e:
            failure = e.to_failure(self.local.name)
            logger.warning("[cascade] {} failed for {}: {}", self.local.name, url, failure.message)
            if not self._escalate(url, [failure]):
                raise
        return await self.browser.fetch(url)
