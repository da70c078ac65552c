"""HTTP client for the public MyAnimeList v2 endpoints."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..errors import CatalogNotFoundError, UpstreamServiceError
from ..models import (
    AnimeDetails,
    AnimeRankingResult,
    AnimeSearchResult,
    AnimeSummary,
    SeasonalAnimeResult,
)
from ..telemetry import metrics

logger = logging.getLogger(__name__)

DEFAULT_FIELDS = "id,title,main_picture,synopsis,mean,rank,popularity,num_episodes,status,media_type"
DETAIL_FIELDS = (
    "id,title,main_picture,synopsis,mean,rank,popularity,num_episodes,start_date,end_date,"
    "status,genres,media_type,num_list_users"
)
RANKING_FIELDS = "id,title,main_picture,mean,rank"
SEASONAL_FIELDS = "id,title,main_picture,synopsis,mean,rank,popularity,num_episodes,start_date,media_type"

RANKING_TYPES = ("all", "airing", "upcoming", "tv", "ova", "movie", "special", "bypopularity", "favorite")
SEASONS = ("winter", "spring", "summer", "fall")


def _picture(node: Dict[str, Any]) -> Optional[str]:
    picture = node.get("main_picture") or {}
    return picture.get("medium") or picture.get("large")


def _summary(node: Dict[str, Any], ranking: Optional[Dict[str, Any]] = None) -> AnimeSummary:
    rank = (ranking or {}).get("rank") or node.get("rank")
    return AnimeSummary(
        id=node["id"],
        title=node.get("title", ""),
        synopsis=node.get("synopsis"),
        picture=_picture(node),
        rating=node.get("mean"),
        rank=rank,
        popularity=node.get("popularity"),
        episodes=node.get("num_episodes"),
        status=node.get("status"),
        type=node.get("media_type"),
        start_date=node.get("start_date"),
    )


def _check_range(name: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}")


class MyAnimeListClient:
    def __init__(
        self,
        base_url: str,
        client_id: str = "",
        *,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.timeout = timeout
        self._session = session or requests.Session()

    def search_anime(self, query: str, limit: int = 10, fields: Optional[str] = None) -> AnimeSearchResult:
        _check_range("limit", limit, 1, 100)
        data = self._get_json(
            "/anime",
            {"q": query, "limit": limit, "fields": fields or DEFAULT_FIELDS},
            "Failed to search anime",
        )
        results = [_summary(item["node"]) for item in data.get("data", [])]
        return AnimeSearchResult(results=results, total=len(results))

    def get_anime_details(self, anime_id: int, fields: Optional[str] = None) -> AnimeDetails:
        context = "Failed to get anime details"
        data = self._get_json(
            f"/anime/{anime_id}",
            {"fields": fields or DETAIL_FIELDS},
            context,
            not_found=f"Anime with ID {anime_id} not found",
        )
        summary = _summary(data)
        return AnimeDetails(
            **summary.model_dump(),
            end_date=data.get("end_date"),
            genres=[genre["name"] for genre in data.get("genres") or [] if genre.get("name")],
            users_listed=data.get("num_list_users"),
        )

    def get_anime_rankings(self, ranking_type: str = "all", limit: int = 10) -> AnimeRankingResult:
        if ranking_type not in RANKING_TYPES:
            raise ValueError(f"ranking_type must be one of: {', '.join(RANKING_TYPES)}")
        _check_range("limit", limit, 1, 500)
        data = self._get_json(
            "/anime/ranking",
            {"ranking_type": ranking_type, "limit": limit, "fields": RANKING_FIELDS},
            "Failed to get anime rankings",
        )
        results = [_summary(item["node"], item.get("ranking")) for item in data.get("data", [])]
        return AnimeRankingResult(results=results, ranking_type=ranking_type, total=len(results))

    def get_seasonal_anime(
        self,
        year: int,
        season: str,
        limit: int = 10,
        fields: Optional[str] = None,
    ) -> SeasonalAnimeResult:
        _check_range("year", year, 1970, 2030)
        if season not in SEASONS:
            raise ValueError(f"season must be one of: {', '.join(SEASONS)}")
        _check_range("limit", limit, 1, 500)
        data = self._get_json(
            f"/anime/season/{year}/{season}",
            {"limit": limit, "fields": fields or SEASONAL_FIELDS},
            "Failed to get seasonal anime",
        )
        results = [_summary(item["node"]) for item in data.get("data", [])]
        return SeasonalAnimeResult(results=results, season=f"{year}/{season}", total=len(results))

    def _get_json(
        self,
        path: str,
        params: Dict[str, Any],
        context: str,
        *,
        not_found: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            with metrics.timer("myanimelist.request", path=path):
                response = self._session.get(
                    url,
                    params=params,
                    headers={"X-MAL-CLIENT-ID": self.client_id},
                    timeout=self.timeout,
                )
        except requests.RequestException as exc:
            metrics.increment("myanimelist.request_failed", path=path)
            raise UpstreamServiceError(f"{context}: {exc}") from exc

        if response.status_code == 404 and not_found:
            raise CatalogNotFoundError(f"{context}: {not_found}")
        if not response.ok:
            metrics.increment("myanimelist.request_failed", path=path, status=response.status_code)
            try:
                body = response.json()
            except ValueError:
                body = {}
            detail = body.get("message") if isinstance(body, dict) else None
            raise UpstreamServiceError(
                f"{context}: {detail or f'API request failed with status {response.status_code}'}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamServiceError(f"{context}: invalid JSON in response", status_code=response.status_code) from exc
