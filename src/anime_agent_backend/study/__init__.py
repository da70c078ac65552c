"""Study assistant: document intake, flashcards, study plans and document Q&A."""

from .chunking import RecursiveTextSplitter
from .document_query import DocumentQueryService
from .flashcards import FlashcardGenerator
from .ingestion import DocumentIngestionWorkflow
from .pdf import PdfProcessor
from .storage import LocalObjectStorage
from .study_plan import StudyPlanGenerator

__all__ = [
    "DocumentIngestionWorkflow",
    "DocumentQueryService",
    "FlashcardGenerator",
    "LocalObjectStorage",
    "PdfProcessor",
    "RecursiveTextSplitter",
    "StudyPlanGenerator",
]
