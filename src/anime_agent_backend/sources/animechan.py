"""HTTP client for the Animechan quote API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..errors import UnexpectedResponseFormat, UpstreamServiceError
from ..models import QuotePage, QuoteRecord
from ..telemetry import metrics, sanitize_text
from .response_shapes import parse_quote_list, parse_single_quote

logger = logging.getLogger(__name__)


class AnimechanClient:
    """Thin synchronous wrapper over the quote endpoints.

    Every call raises on failure; callers that want partial-failure tolerance (the
    verification pipeline) catch ``UpstreamServiceError`` themselves.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.api_key = api_key
        self._session = session or requests.Session()

    def get_random_quote(self, api_key: Optional[str] = None) -> QuoteRecord:
        payload = self._get_json("/quotes/random", None, api_key, "Failed to fetch random quote")
        try:
            return parse_single_quote(payload)
        except UnexpectedResponseFormat as exc:
            raise UnexpectedResponseFormat(f"Failed to fetch random quote: {exc}") from exc

    def get_quotes_by_anime(self, anime: str, page: int = 1, api_key: Optional[str] = None) -> QuotePage:
        return self._get_page("anime", anime, page, api_key)

    def get_quotes_by_character(self, character: str, page: int = 1, api_key: Optional[str] = None) -> QuotePage:
        return self._get_page("character", character, page, api_key)

    def _get_page(self, dimension: str, value: str, page: int, api_key: Optional[str]) -> QuotePage:
        page = page or 1
        context = f'Failed to fetch quotes for {dimension} "{value}"'
        payload = self._get_json("/quotes/", {dimension: value, "page": page}, api_key, context)
        try:
            quotes = parse_quote_list(payload)
        except UnexpectedResponseFormat as exc:
            raise UnexpectedResponseFormat(f"{context}: {exc}") from exc
        logger.debug("Animechan %s=%s page=%d returned %d quotes", dimension, sanitize_text(value), page, len(quotes))
        return QuotePage(quotes=quotes, page=page)

    def _headers(self, api_key: Optional[str]) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        key = api_key or self.api_key
        if key:
            headers["x-api-key"] = key
        return headers

    def _get_json(
        self,
        path: str,
        params: Optional[Dict[str, Any]],
        api_key: Optional[str],
        context: str,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            with metrics.timer("animechan.request", path=path):
                response = self._session.get(
                    url,
                    params=params,
                    headers=self._headers(api_key),
                    timeout=self.timeout,
                )
        except requests.RequestException as exc:
            metrics.increment("animechan.request_failed", path=path)
            raise UpstreamServiceError(f"{context}: {exc}") from exc

        if not response.ok:
            metrics.increment("animechan.request_failed", path=path, status=response.status_code)
            raise UpstreamServiceError(
                f"{context}: {self._error_detail(response)}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamServiceError(f"{context}: invalid JSON in response", status_code=response.status_code) from exc

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        return f"API request failed with status {response.status_code}"
