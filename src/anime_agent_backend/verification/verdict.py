"""Turn match lists into a single verification verdict."""

from __future__ import annotations

from typing import Dict, List, Sequence

from ..models import Confidence, MatchResult, MatchType, QuoteRecord, VerificationVerdict

NOT_FOUND_MESSAGE = (
    "Quote not found in the database. The quote may not exist, or the character/anime "
    "name might be slightly different."
)
NO_INPUT_MESSAGE = "Cannot verify: Please provide at least a quote, character, or anime name."


def dedupe_matches(matches: Sequence[MatchResult]) -> List[MatchResult]:
    """Collapse matches sharing quote text.

    The first occurrence keeps its position; the last occurrence supplies the value.
    """
    by_text: Dict[str, MatchResult] = {}
    for match in matches:
        by_text[match.record.text] = match
    return list(by_text.values())


def compose_verdict(
    matches: Sequence[MatchResult],
    *,
    pool_size: int,
    max_matches: int = 5,
) -> VerificationVerdict:
    """Apply the decision table to the full match list.

    ``matches`` is capped to the first ``max_matches`` entries in pool order, not the
    strongest ones.
    """
    exact = [m for m in matches if m.match_type == MatchType.EXACT]
    partial = [m for m in matches if m.match_type == MatchType.PARTIAL]

    if exact:
        verified, confidence = True, Confidence.HIGH
        message = f"Quote verified! Found {len(exact)} exact match(es)."
    elif partial:
        verified, confidence = True, Confidence.MEDIUM
        message = (
            f"Quote likely verified. Found {len(partial)} partial match(es) - "
            "the quote may have slight variations."
        )
    elif matches:
        verified, confidence = True, Confidence.LOW
        message = f"Found {len(matches)} similar quote(s), but not an exact match."
    else:
        verified = False
        confidence = Confidence.HIGH if pool_size > 0 else Confidence.MEDIUM
        message = NOT_FOUND_MESSAGE

    return VerificationVerdict(
        verified=verified,
        confidence=confidence,
        matches=list(matches[:max_matches]),
        message=message,
    )


def criteria_verdict(pool: Sequence[QuoteRecord], *, max_matches: int = 5) -> VerificationVerdict:
    """Verdict when only character and/or anime were given: the pool is the evidence."""
    if not pool:
        return VerificationVerdict(
            verified=False,
            confidence=Confidence.MEDIUM,
            matches=[],
            message=NOT_FOUND_MESSAGE,
        )
    return VerificationVerdict(
        verified=True,
        confidence=Confidence.MEDIUM,
        matches=[MatchResult(record=record) for record in pool[:max_matches]],
        message=f"Found {len(pool)} quote(s) for the specified criteria.",
    )


def no_input_verdict() -> VerificationVerdict:
    return VerificationVerdict(
        verified=False,
        confidence=Confidence.LOW,
        matches=[],
        message=NO_INPUT_MESSAGE,
    )


def error_verdict(exc: BaseException) -> VerificationVerdict:
    detail = str(exc) or "Unknown error"
    return VerificationVerdict(
        verified=False,
        confidence=Confidence.LOW,
        matches=[],
        message=f"Error during verification: {detail}",
    )
