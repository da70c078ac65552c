"""PDF intake: fetch, size-check, extract text and metadata, store the file."""

from __future__ import annotations

import io
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple, Union

import requests
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from ..errors import DocumentProcessingError
from ..models import PdfMetadata, ProcessedDocument
from ..telemetry import metrics
from .storage import LocalObjectStorage

logger = logging.getLogger(__name__)

_PDF_DATE = re.compile(r"^D:(\d{4})(\d{2})?(\d{2})?(\d{2})?(\d{2})?(\d{2})?")

PdfSource = Union[bytes, str, Path]


def parse_pdf_date(raw: Optional[str]) -> Optional[str]:
    """Convert a PDF date string (``D:YYYYMMDDHHmmSS...``) into ISO-8601 UTC."""
    if not raw:
        return None
    match = _PDF_DATE.match(str(raw).strip())
    if not match:
        return None
    year, month, day, hour, minute, second = (int(part) if part else None for part in match.groups())
    try:
        parsed = datetime(
            year,
            month or 1,
            day or 1,
            hour or 0,
            minute or 0,
            second or 0,
            tzinfo=timezone.utc,
        )
    except ValueError:
        return None
    return parsed.isoformat().replace("+00:00", "Z")


class PdfProcessor:
    """Accepts PDF bytes, an http(s) URL or a local path."""

    def __init__(self, storage: LocalObjectStorage, *, max_file_mb: float = 50.0, timeout: float = 30.0) -> None:
        self.storage = storage
        self.max_file_mb = max_file_mb
        self.timeout = timeout

    def process(
        self,
        source: PdfSource,
        *,
        file_name: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> ProcessedDocument:
        data = self.load(source)
        size_mb = self._check_size(len(data))
        if size_mb > 3:
            logger.info("Processing large PDF (%.2fMB)", size_mb)

        text, metadata = self.extract(data)
        document_id = str(uuid.uuid4())
        folder = f"users/{user_id}/pdfs" if user_id else "pdfs"
        file_path = self.storage.upload(data, file_name or f"document-{document_id}.pdf", folder)
        metrics.increment("documents.processed")
        logger.info("Processed PDF %s: %d pages, %d bytes", document_id, metadata.pages, len(data))
        return ProcessedDocument(
            document_id=document_id,
            file_path=file_path,
            text_content=text,
            metadata=metadata,
            file_size=len(data),
        )

    def load(self, source: PdfSource) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        source_str = str(source)
        if source_str.startswith(("http://", "https://")):
            return self._fetch(source_str)

        path = Path(source_str).expanduser()
        if not path.is_file():
            raise DocumentProcessingError(f"PDF file not found: {source_str}")
        self._check_size(path.stat().st_size)
        return path.read_bytes()

    def extract(self, data: bytes) -> Tuple[str, PdfMetadata]:
        try:
            reader = PdfReader(io.BytesIO(data))
            if reader.is_encrypted:
                raise DocumentProcessingError("PDF is encrypted")
            pages = []
            for page_num, page in enumerate(reader.pages, start=1):
                page_text = page.extract_text() or ""
                if page_text.strip():
                    pages.append(page_text)
                else:
                    logger.debug("No text extracted from page %d", page_num)
            info = reader.metadata or {}
            metadata = PdfMetadata(
                pages=len(reader.pages),
                title=info.get("/Title") or None,
                author=info.get("/Author") or None,
                creation_date=parse_pdf_date(info.get("/CreationDate")),
            )
        except PdfReadError as exc:
            raise DocumentProcessingError(f"Failed to parse PDF: {exc}") from exc
        return "\n\n".join(pages), metadata

    def _fetch(self, url: str) -> bytes:
        try:
            response = requests.get(url, timeout=self.timeout, stream=True)
        except requests.RequestException as exc:
            raise DocumentProcessingError(f"Failed to fetch PDF from URL: {exc}") from exc
        try:
            if not response.ok:
                raise DocumentProcessingError(f"Failed to fetch PDF from URL: {response.reason}")
            content_length = response.headers.get("content-length")
            if content_length and content_length.isdigit():
                self._check_size(int(content_length))
            # Bodies without a usable content-length are capped while they stream in
            buffer = bytearray()
            for chunk in response.iter_content(chunk_size=64 * 1024):
                buffer.extend(chunk)
                self._check_size(len(buffer))
            return bytes(buffer)
        except requests.RequestException as exc:
            raise DocumentProcessingError(f"Failed to fetch PDF from URL: {exc}") from exc
        finally:
            response.close()

    def _check_size(self, size_bytes: int) -> float:
        size_mb = size_bytes / (1024 * 1024)
        if size_mb > self.max_file_mb:
            raise DocumentProcessingError(
                f"File too large: {size_mb:.2f}MB. Maximum size is {self.max_file_mb:g}MB."
            )
        return size_mb
