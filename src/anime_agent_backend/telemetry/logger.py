"""Logging configuration helpers shared by the API, agents and upstream clients."""

from __future__ import annotations

import logging
import re
from typing import Iterable, Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Chatty third-party loggers that only matter when debugging upstream calls
_NOISY_LOGGERS = ("urllib3", "httpx", "httpcore", "openai")

EMAIL_RE = re.compile(r"[\w.+-]+@[\w.-]+\.[a-zA-Z]{2,}")
DIGIT_RE = re.compile(r"\b\d{4,}\b")
SECRET_RE = re.compile(r"\b(?:sk-[A-Za-z0-9_-]{8,}|[a-f0-9]{32,})\b")


def sanitize_text(value: Optional[str], *, max_length: int = 200) -> str:
    """Mask emails, API secrets and long numbers in user supplied text before logging.

    Quotes and prompts can be long, so the result is truncated to ``max_length``
    characters with an ellipsis.
    """

    if not value:
        return ""
    masked = SECRET_RE.sub("<secret>", value)
    masked = EMAIL_RE.sub("<email>", masked)
    masked = DIGIT_RE.sub("<num>", masked)
    if len(masked) > max_length:
        masked = masked[:max_length] + "..."
    return masked


def setup_logging(
    level: Optional[str] = None,
    *,
    fmt: str = _DEFAULT_FORMAT,
    noisy_loggers: Iterable[str] = _NOISY_LOGGERS,
) -> None:
    """Configure root logger level/format if not already configured.

    Parameters
    ----------
    level: Optional[str]
        Desired logging level (case-insensitive). Defaults to INFO when unavailable.
    fmt: str
        Log record format to apply when handlers are created.
    noisy_loggers: Iterable[str]
        Library loggers raised to WARNING unless DEBUG was requested.
    """

    desired_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    root_logger = logging.getLogger()

    library_level = logging.DEBUG if desired_level <= logging.DEBUG else logging.WARNING
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(library_level)

    # If handlers already exist, update their levels/formats.
    if root_logger.handlers:
        for handler in root_logger.handlers:
            handler.setLevel(desired_level)
            handler.setFormatter(logging.Formatter(fmt))
        root_logger.setLevel(desired_level)
        return

    logging.basicConfig(level=desired_level, format=fmt)
