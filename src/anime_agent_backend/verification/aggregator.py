"""Merge per-dimension quote lookups into one candidate pool."""

from __future__ import annotations

from typing import List, Sequence

from ..models import QuoteRecord
from ..telemetry.metrics import metrics


def merge_candidates(
    character_quotes: Sequence[QuoteRecord],
    anime_quotes: Sequence[QuoteRecord],
) -> List[QuoteRecord]:
    """Return character quotes followed by anime quotes whose text is not yet present.

    Text comparison is exact and case-sensitive. Attribution is ignored, so the same
    line credited to two characters is kept once, first occurrence winning.
    """
    pool: List[QuoteRecord] = []
    seen: set[str] = set()
    for record in list(character_quotes) + list(anime_quotes):
        if record.text in seen:
            continue
        seen.add(record.text)
        pool.append(record)

    dropped = len(character_quotes) + len(anime_quotes) - len(pool)
    if dropped:
        metrics.increment("verification.pool.duplicates", value=dropped)
    return pool
