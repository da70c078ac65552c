"""Three-tier quote matching: exact, substring, then word-set overlap."""

from __future__ import annotations

from typing import List, Optional, Sequence

from ..models import MatchResult, MatchType, QuoteRecord


def normalize_text(text: str) -> str:
    """Lower-case and trim; internal whitespace is left untouched."""
    return text.lower().strip()


def word_overlap(left: str, right: str) -> float:
    left_words = set(left.split())
    right_words = set(right.split())
    union = left_words | right_words
    if not union:
        return 0.0
    return len(left_words & right_words) / len(union)


def classify_match(
    candidate: str,
    query: str,
    *,
    similarity_threshold: float = 0.5,
    min_words_exclusive: int = 2,
) -> Optional[MatchType]:
    """Classify one candidate against the query; both must already be normalized."""
    if candidate == query:
        return MatchType.EXACT
    if query in candidate or candidate in query:
        return MatchType.PARTIAL

    candidate_words = set(candidate.split())
    query_words = set(query.split())
    if len(candidate_words) <= min_words_exclusive or len(query_words) <= min_words_exclusive:
        return None
    if word_overlap(candidate, query) >= similarity_threshold:
        return MatchType.SIMILAR
    return None


def match_quotes(
    quote: str,
    pool: Sequence[QuoteRecord],
    *,
    similarity_threshold: float = 0.5,
    min_words_exclusive: int = 2,
) -> List[MatchResult]:
    """Return a ``MatchResult`` for every candidate meeting a rule, in pool order.

    Candidates that meet no rule are dropped. The result is not sorted by match type.
    """
    query = normalize_text(quote)
    matches: List[MatchResult] = []
    for record in pool:
        match_type = classify_match(
            normalize_text(record.text),
            query,
            similarity_threshold=similarity_threshold,
            min_words_exclusive=min_words_exclusive,
        )
        if match_type is not None:
            matches.append(MatchResult(record=record, match_type=match_type))
    return matches
