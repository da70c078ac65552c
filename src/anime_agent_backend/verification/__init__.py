"""Quote verification: candidate aggregation, matching and verdicts."""

from .aggregator import merge_candidates
from .matcher import classify_match, match_quotes, normalize_text
from .pipeline import QuoteVerificationPipeline
from .report import VerificationReporter
from .verdict import compose_verdict, criteria_verdict, dedupe_matches, error_verdict, no_input_verdict

__all__ = [
    "QuoteVerificationPipeline",
    "VerificationReporter",
    "classify_match",
    "compose_verdict",
    "criteria_verdict",
    "dedupe_matches",
    "error_verdict",
    "match_quotes",
    "merge_candidates",
    "no_input_verdict",
    "normalize_text",
]
