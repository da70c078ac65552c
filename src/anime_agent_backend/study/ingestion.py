"""Document ingestion: PDF -> text -> chunks -> stored summary and chunk index."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models import IngestionResult, ProcessedDocument, TextChunk
from ..telemetry import metrics
from .chunking import RecursiveTextSplitter
from .pdf import PdfProcessor, PdfSource
from .storage import LocalObjectStorage

logger = logging.getLogger(__name__)


def summary_key(document_id: str) -> str:
    return f"metadata/{document_id}-summary.json"


def chunks_key(document_id: str) -> str:
    return f"documents/{document_id}/chunks.json"


class DocumentIngestionWorkflow:
    def __init__(
        self,
        processor: PdfProcessor,
        splitter: RecursiveTextSplitter,
        storage: LocalObjectStorage,
    ) -> None:
        self.processor = processor
        self.splitter = splitter
        self.storage = storage

    def run(
        self,
        source: PdfSource,
        *,
        file_name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> IngestionResult:
        with metrics.timer("documents.ingest"):
            document = self.processor.process(source, file_name=file_name, user_id=user_id)
            chunks = self.splitter.chunk(document.document_id, document.text_content)
            self._store(document, chunks)

        logger.info("Ingested document %s into %d chunks", document.document_id, len(chunks))
        metrics.increment("documents.chunks", value=len(chunks))
        return IngestionResult(
            document_id=document.document_id,
            chunks_count=len(chunks),
            stored=True,
            file_path=document.file_path,
        )

    def _store(self, document: ProcessedDocument, chunks: List[TextChunk]) -> None:
        summary: Dict[str, Any] = {
            "documentId": document.document_id,
            "chunksCount": len(chunks),
            "metadata": document.metadata.to_payload(),
            "filePath": document.file_path,
            "createdAt": datetime.now(timezone.utc).isoformat(),
            "chunks": [
                {"index": chunk.index, "textLength": len(chunk.text), "charStart": chunk.char_start}
                for chunk in chunks
            ],
        }
        self.storage.upload(
            json.dumps(summary, indent=2).encode("utf-8"),
            f"{document.document_id}-summary.json",
            "metadata",
        )
        self.storage.upload(
            json.dumps([chunk.to_payload() for chunk in chunks]).encode("utf-8"),
            "chunks.json",
            f"documents/{document.document_id}",
        )


def load_chunks(storage: LocalObjectStorage, document_id: str) -> List[TextChunk]:
    """Return stored chunks for *document_id*, or an empty list when none exist."""
    key = chunks_key(document_id)
    if not storage.exists(key):
        return []
    raw = json.loads(storage.download(key).decode("utf-8"))
    return [TextChunk.model_validate(item) for item in raw]
