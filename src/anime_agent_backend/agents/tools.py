"""Tool definitions exposed to the agents.

Each builder takes the collaborators it needs explicitly; nothing here reaches for
module-level singletons.
"""

from __future__ import annotations

import base64
import binascii
from typing import Callable, List, Literal, Optional

from pydantic import Field

from ..a2a.client import A2AClient
from ..errors import DocumentProcessingError
from ..models import (
    CamelModel,
    DocumentQueryRequest,
    FlashcardRequest,
    StudyPlanRequest,
    VerificationRequest,
)
from ..sources.animechan import AnimechanClient
from ..sources.myanimelist import MyAnimeListClient
from ..study.document_query import DocumentQueryService
from ..study.flashcards import FlashcardGenerator
from ..study.ingestion import DocumentIngestionWorkflow
from ..study.study_plan import StudyPlanGenerator
from ..verification.pipeline import QuoteVerificationPipeline
from .base import AgentTool
from .registry import AgentRegistry


# --- Input models ---

class ApiKeyInput(CamelModel):
    api_key: Optional[str] = Field(
        None,
        description="Optional API key for supporter tier (1000 requests/hour). Sent as the x-api-key header.",
    )


class QuotesByAnimeInput(ApiKeyInput):
    anime: str = Field(..., description='The anime title to get quotes from (e.g., "Naruto", "One Piece")')
    page: int = Field(1, ge=1, description="Page number for pagination (default: 1)")


class QuotesByCharacterInput(ApiKeyInput):
    character: str = Field(..., description='The character name (e.g., "Naruto Uzumaki", "Light Yagami")')
    page: int = Field(1, ge=1, description="Page number for pagination (default: 1)")


class SearchAnimeInput(CamelModel):
    query: str = Field(..., description="Search query (anime title or keywords)")
    limit: int = Field(10, ge=1, le=100, description="Maximum number of results (1-100, default: 10)")
    fields: Optional[str] = Field(None, description='Comma-separated list of fields to return (e.g., "synopsis,mean,rank")')


class AnimeDetailsInput(CamelModel):
    anime_id: int = Field(..., description="MyAnimeList anime ID (e.g., 30230, 266)")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to return")


class AnimeRankingsInput(CamelModel):
    ranking_type: Literal[
        "all", "airing", "upcoming", "tv", "ova", "movie", "special", "bypopularity", "favorite"
    ] = Field("all", description="Type of ranking to retrieve")
    limit: int = Field(10, ge=1, le=500, description="Number of results (1-500, default: 10)")


class SeasonalAnimeInput(CamelModel):
    year: int = Field(..., ge=1970, le=2030, description="Year (e.g., 2017, 2023)")
    season: Literal["winter", "spring", "summer", "fall"] = Field(..., description="Season of the year")
    limit: int = Field(10, ge=1, le=500, description="Number of results (default: 10)")
    fields: Optional[str] = Field(None, description="Comma-separated list of fields to return")


class CallAgentInput(CamelModel):
    agent_id: str = Field(..., description='The ID of the agent to call (e.g., "animeAgent", "studyBuddyAgent")')
    message: str = Field(..., description="The message or question to send to the target agent")


class A2ACommunicateInput(CamelModel):
    target_agent_id: str = Field(..., description='The ID of the target agent (e.g., "animeAgent")')
    message: str = Field(..., description="The message to send to the target agent")
    base_url: Optional[str] = Field(None, description="Base URL of the target server; defaults to the configured one")


class ProcessPdfInput(CamelModel):
    pdf_file: str = Field(..., description="URL to a PDF file, a local file path, or base64-encoded PDF bytes")
    file_name: Optional[str] = Field(None, description="Optional custom filename; generated from the document ID if omitted")
    user_id: Optional[str] = Field(None, description="Optional user ID used to organize files per user")


# --- Builders ---

def quote_tools(animechan: AnimechanClient, pipeline: QuoteVerificationPipeline) -> List[AgentTool]:
    return [
        AgentTool(
            "get_random_quote",
            "Get a random anime quote from the Animechan API. Returns a quote along with the anime title and character name.",
            ApiKeyInput,
            lambda params: animechan.get_random_quote(api_key=params.api_key),
        ),
        AgentTool(
            "get_quotes_by_anime",
            "Get anime quotes from a specific anime series. Returns multiple quotes from the specified anime.",
            QuotesByAnimeInput,
            lambda params: animechan.get_quotes_by_anime(params.anime, page=params.page, api_key=params.api_key),
        ),
        AgentTool(
            "get_quotes_by_character",
            "Get anime quotes from a specific character. Returns multiple quotes said by the specified character.",
            QuotesByCharacterInput,
            lambda params: animechan.get_quotes_by_character(params.character, page=params.page, api_key=params.api_key),
        ),
        AgentTool(
            "verify_anime_quote",
            "Verify if a quote is accurate by searching for it. Checks if a character said a specific quote, "
            "or if a quote exists in an anime. Matches are listed in lookup order, not sorted by strength.",
            VerificationRequest,
            pipeline.verify,
        ),
    ]


def catalog_tools(catalog: MyAnimeListClient) -> List[AgentTool]:
    return [
        AgentTool(
            "search_anime",
            "Search for anime on MyAnimeList. Returns anime matching the query with synopsis, ratings and popularity.",
            SearchAnimeInput,
            lambda params: catalog.search_anime(params.query, limit=params.limit, fields=params.fields),
        ),
        AgentTool(
            "get_anime_details",
            "Get detailed information about a specific anime by MyAnimeList ID, including genres, episodes and dates.",
            AnimeDetailsInput,
            lambda params: catalog.get_anime_details(params.anime_id, fields=params.fields),
        ),
        AgentTool(
            "get_anime_rankings",
            "Get top anime rankings from MyAnimeList: overall, airing, upcoming, TV, movies, or by popularity.",
            AnimeRankingsInput,
            lambda params: catalog.get_anime_rankings(params.ranking_type, limit=params.limit),
        ),
        AgentTool(
            "get_seasonal_anime",
            "Get anime for a specific season and year (winter, spring, summer, fall) from MyAnimeList.",
            SeasonalAnimeInput,
            lambda params: catalog.get_seasonal_anime(params.year, params.season, limit=params.limit, fields=params.fields),
        ),
    ]


def call_agent_tool(registry: AgentRegistry) -> AgentTool:
    def call(params: CallAgentInput) -> dict:
        agent = registry.get(params.agent_id)
        result = agent.generate(params.message)
        return {"response": result.text, "agentName": agent.name or params.agent_id, "agentId": params.agent_id}

    return AgentTool(
        "call_agent",
        "Call another agent in this service to help with a task. Use this to delegate to a specialized agent.",
        CallAgentInput,
        call,
    )


def a2a_tool(client_factory: Callable[[Optional[str]], A2AClient]) -> AgentTool:
    def communicate(params: A2ACommunicateInput):
        return client_factory(params.base_url).send_message(params.target_agent_id, params.message)

    return AgentTool(
        "a2a_communicate",
        "Communicate with another agent over HTTP using the A2A protocol. The target agent must be running and reachable.",
        A2ACommunicateInput,
        communicate,
    )


def _pdf_source(value: str):
    # base64 of "%PDF"
    if not value.startswith("JVBER"):
        return value
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DocumentProcessingError("Invalid base64 PDF content") from exc


def study_tools(
    ingestion: DocumentIngestionWorkflow,
    flashcards: FlashcardGenerator,
    planner: StudyPlanGenerator,
    documents: DocumentQueryService,
) -> List[AgentTool]:
    def process_pdf(params: ProcessPdfInput):
        return ingestion.run(_pdf_source(params.pdf_file), file_name=params.file_name, user_id=params.user_id)

    return [
        AgentTool(
            "process_pdf",
            "Upload and process a PDF document: extract text, store the file and its chunks, and return the document ID.",
            ProcessPdfInput,
            process_pdf,
        ),
        AgentTool(
            "generate_flashcards",
            "Generate flashcards from text: basic Q&A, cloze, multiple choice, true/false, concept-definition, "
            "or image-based cards with image generation prompts.",
            FlashcardRequest,
            flashcards.generate,
        ),
        AgentTool(
            "generate_study_plan",
            "Generate a daily or weekly study plan from available hours, study days and document structure.",
            StudyPlanRequest,
            planner.generate,
        ),
        AgentTool(
            "query_document",
            "Answer a question about processed study material, optionally scoped to a chapter, topic or document ID.",
            DocumentQueryRequest,
            documents.query,
        ),
    ]
