import logging
import os
from typing import Any, Optional

from fastapi import FastAPI, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .a2a.bridge import BridgeResponse
from .agents.base import to_jsonable
from .config import settings
from .errors import (
    AnimeAgentError,
    CatalogNotFoundError,
    DocumentProcessingError,
    StorageError,
    UnexpectedResponseFormat,
    UpstreamServiceError,
)
from .models import (
    DocumentQueryRequest,
    FlashcardRequest,
    StudyPlanRequest,
    VerificationRequest,
)
from .services import Services, build_services
from .telemetry import metrics, setup_logging

logger = logging.getLogger(__name__)


def _http_error(exc: Exception, action: str) -> HTTPException:
    """Map a domain failure onto the HTTP status a client can act on."""
    if isinstance(exc, CatalogNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, (UpstreamServiceError, UnexpectedResponseFormat)):
        return HTTPException(status_code=502, detail=str(exc))
    if isinstance(exc, (DocumentProcessingError, ValueError)):
        return HTTPException(status_code=400, detail=str(exc))
    logger.exception("Failed to %s", action)
    return HTTPException(status_code=500, detail=f"Failed to {action}: {exc}")


def _bridge_json(response: BridgeResponse) -> JSONResponse:
    return JSONResponse(status_code=response.status_code, content=response.body)


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


def create_app(services: Optional[Services] = None) -> FastAPI:
    setup_logging(os.getenv("ANIME_AGENT_LOG_LEVEL") or settings.app_config.telemetry.log_level)
    if services is None:
        services = build_services(settings)

    app = FastAPI(
        title="Anime Agent Backend",
        description="Anime quote verification, catalog lookup and study assistant agents.",
        version="1.0.0",
    )

    # --- CORS Configuration ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Health Check ---
    @app.get("/health")
    def health_check():
        return {
            "status": "ok",
            "agents": services.registry.list_ids(),
            "metricsEnabled": metrics.enabled,
        }

    # --- Quotes ---

    @app.post("/api/quotes/verify")
    def verify_quote(request: VerificationRequest):
        """Verify a quote; failures are reported inside the verdict, never as HTTP errors."""
        return services.pipeline.verify(request).to_payload()

    @app.post("/api/quotes/verify/report")
    def verify_quote_report(request: VerificationRequest):
        return services.reporter.run(request).to_payload()

    @app.get("/api/quotes/random")
    def random_quote(x_api_key: Optional[str] = Header(None)):
        try:
            return services.animechan.get_random_quote(api_key=x_api_key).to_payload()
        except AnimeAgentError as e:
            raise _http_error(e, "fetch random quote")

    @app.get("/api/quotes/anime")
    def quotes_by_anime(anime: str, page: int = 1, x_api_key: Optional[str] = Header(None)):
        try:
            return services.animechan.get_quotes_by_anime(anime, page=page, api_key=x_api_key).to_payload()
        except AnimeAgentError as e:
            raise _http_error(e, "fetch quotes by anime")

    @app.get("/api/quotes/character")
    def quotes_by_character(character: str, page: int = 1, x_api_key: Optional[str] = Header(None)):
        try:
            return services.animechan.get_quotes_by_character(character, page=page, api_key=x_api_key).to_payload()
        except AnimeAgentError as e:
            raise _http_error(e, "fetch quotes by character")

    # --- Anime catalog ---

    @app.get("/api/anime/search")
    def search_anime(q: str, limit: int = 10, fields: Optional[str] = None):
        try:
            return services.catalog.search_anime(q, limit=limit, fields=fields).to_payload()
        except (AnimeAgentError, ValueError) as e:
            raise _http_error(e, "search anime")

    @app.get("/api/anime/ranking")
    def anime_ranking(ranking_type: str = "all", limit: int = 10):
        try:
            return services.catalog.get_anime_rankings(ranking_type, limit=limit).to_payload()
        except (AnimeAgentError, ValueError) as e:
            raise _http_error(e, "get anime rankings")

    @app.get("/api/anime/season/{year}/{season}")
    def seasonal_anime(year: int, season: str, limit: int = 10, fields: Optional[str] = None):
        try:
            return services.catalog.get_seasonal_anime(year, season, limit=limit, fields=fields).to_payload()
        except (AnimeAgentError, ValueError) as e:
            raise _http_error(e, "get seasonal anime")

    @app.get("/api/anime/{anime_id}")
    def anime_details(anime_id: int, fields: Optional[str] = None):
        try:
            return services.catalog.get_anime_details(anime_id, fields=fields).to_payload()
        except (AnimeAgentError, ValueError) as e:
            raise _http_error(e, "get anime details")

    # --- Study assistant ---

    @app.post("/api/documents", status_code=201)
    async def upload_document(file: UploadFile = File(...), user_id: Optional[str] = Form(None)):
        """Upload a PDF, extract its text and store it with its chunks."""
        if file.filename and not file.filename.lower().endswith(".pdf"):
            raise HTTPException(status_code=400, detail="Only PDF files are supported")
        data = await file.read()
        try:
            result = await run_in_threadpool(services.ingestion.run, data, file_name=file.filename, user_id=user_id)
        except (DocumentProcessingError, StorageError) as e:
            raise _http_error(e, "process document")
        return result.to_payload()

    @app.post("/api/documents/query")
    def query_document(request: DocumentQueryRequest):
        return services.documents.query(request).to_payload()

    @app.post("/api/flashcards")
    def generate_flashcards(request: FlashcardRequest):
        return to_jsonable(services.flashcards.generate(request))

    @app.post("/api/study-plans")
    def generate_study_plan(request: StudyPlanRequest):
        return to_jsonable(services.planner.generate(request))

    # --- Agent-to-agent ---

    @app.post("/a2a/agent/{agent_id}")
    async def a2a_rpc(agent_id: str, request: Request):
        body = await _json_body(request)
        return _bridge_json(await run_in_threadpool(services.bridge.handle_rpc, agent_id, body))

    @app.get("/a2a/agent/{agent_id}/card")
    def a2a_card(agent_id: str):
        return _bridge_json(services.bridge.agent_card(agent_id))

    @app.post("/a2a/agent/{agent_id}/message")
    async def a2a_message(agent_id: str, request: Request):
        body = await _json_body(request)
        return _bridge_json(await run_in_threadpool(services.bridge.handle_message, agent_id, body))

    return app


app = create_app()
