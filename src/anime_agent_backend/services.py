"""Construct the clients, workflows and agents the API serves."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import openai
import requests

from .a2a.bridge import A2ABridge
from .a2a.client import A2AClient
from .agents.anime_agent import create_anime_agent
from .agents.registry import AgentRegistry
from .agents.study_buddy_agent import create_study_buddy_agent
from .config import Settings
from .sources.animechan import AnimechanClient
from .sources.myanimelist import MyAnimeListClient
from .study.chunking import RecursiveTextSplitter
from .study.document_query import DocumentQueryService
from .study.flashcards import FlashcardGenerator
from .study.ingestion import DocumentIngestionWorkflow
from .study.pdf import PdfProcessor
from .study.storage import LocalObjectStorage
from .study.study_plan import StudyPlanGenerator
from .telemetry import metrics
from .verification.pipeline import QuoteVerificationPipeline
from .verification.report import VerificationReporter

logger = logging.getLogger(__name__)


@dataclass
class Services:
    animechan: AnimechanClient
    catalog: MyAnimeListClient
    pipeline: QuoteVerificationPipeline
    reporter: VerificationReporter
    storage: LocalObjectStorage
    ingestion: DocumentIngestionWorkflow
    flashcards: FlashcardGenerator
    planner: StudyPlanGenerator
    documents: DocumentQueryService
    registry: AgentRegistry
    bridge: A2ABridge


def build_services(
    settings: Settings,
    *,
    llm_client: Optional[openai.OpenAI] = None,
    session: Optional[requests.Session] = None,
) -> Services:
    """Wire every collaborator from ``settings``; ``llm_client`` and ``session`` are injectable for tests."""
    config = settings.app_config
    metrics.configure(enabled=config.telemetry.metrics_enabled)
    session = session or requests.Session()

    animechan = AnimechanClient(
        config.animechan.base_url,
        timeout=config.animechan.timeout_s,
        api_key=settings.animechan_api_key,
        session=session,
    )
    catalog = MyAnimeListClient(
        config.myanimelist.base_url,
        settings.mal_client_id,
        timeout=config.myanimelist.timeout_s,
        session=session,
    )
    if not settings.mal_client_id:
        logger.warning("MAL_CLIENT_ID is not set; MyAnimeList requests will be rejected upstream")

    pipeline = QuoteVerificationPipeline(animechan, config.verification)

    registry = AgentRegistry()
    storage = LocalObjectStorage(settings.resolved_storage_root())
    processor = PdfProcessor(storage, max_file_mb=config.documents.max_file_mb)
    splitter = RecursiveTextSplitter(config.documents.chunk_size, config.documents.chunk_overlap)
    ingestion = DocumentIngestionWorkflow(processor, splitter, storage)
    flashcards = FlashcardGenerator(registry)
    planner = StudyPlanGenerator(registry)
    documents = DocumentQueryService(registry, storage, context_chunks=config.documents.query_context_chunks)

    def a2a_client(base_url: Optional[str]) -> A2AClient:
        return A2AClient(base_url or settings.a2a_base_url, session=session)

    llm_client = llm_client or openai.OpenAI(api_key=settings.llm_api_key, base_url=settings.llm_base_url)
    registry.register(
        create_anime_agent(
            llm_client,
            settings.llm_model,
            registry=registry,
            animechan=animechan,
            catalog=catalog,
            pipeline=pipeline,
            a2a_client_factory=a2a_client,
            generation=config.generation,
        )
    )
    registry.register(
        create_study_buddy_agent(
            llm_client,
            settings.llm_model,
            registry=registry,
            ingestion=ingestion,
            flashcards=flashcards,
            planner=planner,
            documents=documents,
            generation=config.generation,
        )
    )
    logger.info("Registered agents: %s", ", ".join(registry.list_ids()))

    return Services(
        animechan=animechan,
        catalog=catalog,
        pipeline=pipeline,
        reporter=VerificationReporter(pipeline, registry),
        storage=storage,
        ingestion=ingestion,
        flashcards=flashcards,
        planner=planner,
        documents=documents,
        registry=registry,
        bridge=A2ABridge(registry),
    )
