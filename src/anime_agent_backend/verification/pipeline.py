"""Quote verification pipeline: lookup, merge, match, verdict."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Protocol

import requests

from ..config import VerificationSettings
from ..errors import UpstreamServiceError
from ..models import QuotePage, QuoteRecord, VerificationRequest, VerificationVerdict
from ..telemetry import metrics, sanitize_text
from .aggregator import merge_candidates
from .matcher import match_quotes
from .verdict import compose_verdict, criteria_verdict, dedupe_matches, error_verdict, no_input_verdict

logger = logging.getLogger(__name__)


class QuoteSource(Protocol):
    def get_quotes_by_character(self, character: str, page: int = 1, api_key: Optional[str] = None) -> QuotePage:
        ...

    def get_quotes_by_anime(self, anime: str, page: int = 1, api_key: Optional[str] = None) -> QuotePage:
        ...


class QuoteVerificationPipeline:
    """Verifies a quote against the quote source.

    ``verify`` never raises: lookups that fail for one dimension contribute no records,
    and any other failure becomes the low-confidence error verdict.
    """

    def __init__(self, quote_source: QuoteSource, settings: Optional[VerificationSettings] = None) -> None:
        self.quote_source = quote_source
        self.settings = settings or VerificationSettings()

    def verify(self, request: VerificationRequest) -> VerificationVerdict:
        if not (request.quote or request.character or request.anime):
            verdict = no_input_verdict()
            self._record(verdict)
            return verdict

        try:
            with metrics.timer("verification.pipeline"):
                verdict = self._verify(request)
        except Exception as exc:
            logger.exception("Quote verification failed: %s", exc)
            verdict = error_verdict(exc)

        self._record(verdict)
        return verdict

    def _verify(self, request: VerificationRequest) -> VerificationVerdict:
        character_quotes, anime_quotes = self._gather(request)
        pool = merge_candidates(character_quotes, anime_quotes)
        logger.info(
            "Verification pool built: %d candidates (character=%s, anime=%s)",
            len(pool),
            sanitize_text(request.character or "-"),
            sanitize_text(request.anime or "-"),
        )

        if not request.quote:
            return criteria_verdict(pool, max_matches=self.settings.max_matches)

        matches = match_quotes(
            request.quote,
            pool,
            similarity_threshold=self.settings.similarity_threshold,
            min_words_exclusive=self.settings.min_words_exclusive,
        )
        return compose_verdict(
            dedupe_matches(matches),
            pool_size=len(pool),
            max_matches=self.settings.max_matches,
        )

    def _gather(self, request: VerificationRequest) -> tuple[List[QuoteRecord], List[QuoteRecord]]:
        lookups: List[Callable[[], List[QuoteRecord]]] = [
            lambda: self._lookup("character", request.character, self.quote_source.get_quotes_by_character, request.api_key),
            lambda: self._lookup("anime", request.anime, self.quote_source.get_quotes_by_anime, request.api_key),
        ]
        if not self.settings.concurrent_lookups:
            character_quotes, anime_quotes = (lookup() for lookup in lookups)
            return character_quotes, anime_quotes

        with ThreadPoolExecutor(max_workers=len(lookups), thread_name_prefix="quote-lookup") as pool:
            futures = [pool.submit(lookup) for lookup in lookups]
            character_quotes, anime_quotes = (future.result() for future in futures)
        return character_quotes, anime_quotes

    def _lookup(
        self,
        dimension: str,
        value: Optional[str],
        fetch: Callable[..., QuotePage],
        api_key: Optional[str],
    ) -> List[QuoteRecord]:
        if not value:
            return []
        try:
            return list(fetch(value, page=1, api_key=api_key).quotes)
        except (UpstreamServiceError, requests.RequestException, ValueError) as exc:
            logger.warning("Quote lookup by %s failed; continuing without it: %s", dimension, exc)
            metrics.increment("verification.upstream_failure", dimension=dimension)
            return []

    @staticmethod
    def _record(verdict: VerificationVerdict) -> None:
        metrics.increment(
            "verification.verdict",
            confidence=verdict.confidence.value,
            verified=verdict.verified,
        )
