"""Question answering over processed documents via the study agent."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, List, Optional

import openai
from pydantic import ValidationError

from ..errors import AnimeAgentError, StorageError
from ..llm_output import extract_json_payload
from ..models import Confidence, DocumentAnswer, DocumentQueryRequest, DocumentSourceRef, TextChunk
from .ingestion import load_chunks
from .storage import LocalObjectStorage

if TYPE_CHECKING:
    from ..agents.registry import AgentRegistry

logger = logging.getLogger(__name__)

STUDY_AGENT_ID = "studyBuddyAgent"
ERROR_ANSWER = "I encountered an error while processing your question. Please try again."
UNAVAILABLE_ANSWER = "I cannot answer questions at this time. Please ensure documents have been processed first."
TERM_PATTERN = re.compile(r"\w+")


def _terms(text: str) -> set[str]:
    return {term for term in TERM_PATTERN.findall(text.lower()) if len(term) > 2}


def rank_chunks(question: str, chunks: List[TextChunk], limit: int) -> List[TextChunk]:
    """Order chunks by how many distinct question terms they contain; ties keep document order."""
    query_terms = _terms(question)
    if not query_terms:
        return []
    scored = [(len(query_terms & _terms(chunk.text)), chunk.index, chunk) for chunk in chunks]
    scored = [item for item in scored if item[0] > 0]
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [chunk for _, _, chunk in scored[:limit]]


def build_query_prompt(request: DocumentQueryRequest, context: List[str]) -> str:
    lines = ["Answer the following question about the study material:", "", f"Question: {request.question}", ""]
    if request.chapter:
        lines.append(f"Focus on chapter: {request.chapter}")
    if request.topic:
        lines.append(f"Focus on topic: {request.topic}")
    if request.document_id:
        lines.append(f"From document ID: {request.document_id}")
    if context:
        lines += ["", "Relevant excerpts:"]
        lines += [f"[{index}] {text}" for index, text in enumerate(context, start=1)]
    lines += [
        "",
        "Instructions:",
        "1. Provide a clear, accurate answer based on the document content",
        "2. Include relevant context and details",
        "3. If the information is not available in the documents, say so clearly",
        "4. Cite which chapters or sections your answer comes from if possible",
        "5. Be concise but thorough",
        "",
        "Answer:",
    ]
    return "\n".join(lines)


class DocumentQueryService:
    def __init__(self, agents: "AgentRegistry", storage: LocalObjectStorage, *, context_chunks: int = 5) -> None:
        self.agents = agents
        self.storage = storage
        self.context_chunks = context_chunks

    def query(self, request: DocumentQueryRequest) -> DocumentAnswer:
        agent = self.agents.find(STUDY_AGENT_ID)
        if agent is None:
            return DocumentAnswer(answer=UNAVAILABLE_ANSWER, confidence=Confidence.LOW)

        try:
            context = self._context(request)
            text = agent.generate(build_query_prompt(request, context), allow_tools=False).text
        except (AnimeAgentError, openai.OpenAIError, ValueError) as exc:
            logger.error("Error querying document: %s", exc)
            return DocumentAnswer(answer=ERROR_ANSWER, confidence=Confidence.LOW)

        answer, sources, confidence = self._parse(text)
        return DocumentAnswer(answer=answer, context=context, sources=sources, confidence=confidence)

    def _context(self, request: DocumentQueryRequest) -> List[str]:
        if not request.document_id:
            return []
        try:
            chunks = load_chunks(self.storage, request.document_id)
        except StorageError as exc:
            logger.warning("Could not load chunks for %s: %s", request.document_id, exc)
            return []
        return [chunk.text for chunk in rank_chunks(request.question, chunks, self.context_chunks)]

    @staticmethod
    def _parse(text: str) -> tuple[str, List[DocumentSourceRef], Confidence]:
        payload = extract_json_payload(text)
        if not isinstance(payload, dict):
            return text, [], Confidence.MEDIUM

        answer = payload.get("answer") or payload.get("text") or text
        try:
            sources = [DocumentSourceRef.model_validate(item) for item in payload.get("sources") or []]
        except ValidationError:
            sources = []
        try:
            confidence = Confidence(payload.get("confidence") or Confidence.MEDIUM.value)
        except ValueError:
            confidence = Confidence.MEDIUM
        return str(answer), sources, confidence
