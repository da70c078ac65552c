"""Flashcard generation through the study agent, with text and sentence fallbacks."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import openai
from pydantic import ValidationError

from ..errors import AnimeAgentError
from ..llm_output import extract_json_payload
from ..models import Flashcard, FlashcardRequest, FlashcardSet, FlashcardType
from ..telemetry import metrics

if TYPE_CHECKING:
    from ..agents.registry import AgentRegistry

logger = logging.getLogger(__name__)

STUDY_AGENT_ID = "studyBuddyAgent"
MAX_PROMPT_CONTENT = 3000

TYPE_INSTRUCTIONS = {
    FlashcardType.BASIC: "Basic question and answer format",
    FlashcardType.CLOZE: "Cloze deletion format with blanks to fill in",
    FlashcardType.MULTIPLE_CHOICE: "Multiple choice questions with 4 options",
    FlashcardType.IMAGE_BASED: "Include detailed image generation prompts and descriptions for visual learning",
    FlashcardType.TRUE_FALSE: "True/False questions",
    FlashcardType.CONCEPT_DEFINITION: "Concept on front, definition on back",
}

_FRONT_PREFIX = re.compile(r"^(Q:|Question:|Front:)\s*", re.IGNORECASE)
_BACK_PREFIX = re.compile(r"^(A:|Answer:|Back:)\s*", re.IGNORECASE)
_SENTENCE_END = re.compile(r"[.!?]+")


def build_flashcard_prompt(request: FlashcardRequest) -> str:
    card_type = request.flashcard_type.value
    content = request.content[:MAX_PROMPT_CONTENT]
    if len(request.content) > MAX_PROMPT_CONTENT:
        content += "..."

    requirements = [
        f"- Flashcard type: {card_type} ({TYPE_INSTRUCTIONS[request.flashcard_type]})",
        f"- Difficulty: {request.difficulty.value}",
    ]
    if request.topic:
        requirements.append(f"- Topic: {request.topic}")
    if request.chapter:
        requirements.append(f"- Chapter: {request.chapter}")

    image_note = ""
    example_extra = ""
    if request.flashcard_type == FlashcardType.IMAGE_BASED:
        image_note = (
            "\n\nIMPORTANT: For image-based flashcards, include:\n"
            "   - A detailed, specific image generation prompt describing diagrams, concepts, processes, or illustrations\n"
            "   - An image description explaining what visual should be generated and why it's educational\n"
            "   - Make prompts educational and clear, suitable for learning visuals"
        )
        example_extra = (
            ',\n      "imagePrompt": "detailed prompt for image generation",'
            '\n      "imageDescription": "description of the educational image"'
        )

    return (
        f"Generate {request.count} {request.difficulty.value} difficulty {card_type} flashcards "
        f"from the following content:\n\n{content}\n\n"
        "Requirements:\n" + "\n".join(requirements) + image_note + "\n\n"
        "Return as JSON with this structure:\n"
        "{\n"
        '  "flashcards": [\n'
        "    {\n"
        '      "id": "unique-id",\n'
        f'      "type": "{card_type}",\n'
        '      "front": "question or concept",\n'
        '      "back": "answer or explanation",\n'
        f'      "difficulty": "{request.difficulty.value}"{example_extra}\n'
        "    }\n"
        "  ]\n"
        "}"
    )


def _card(request: FlashcardRequest, index: int, front: str, back: str = "", **extra: Any) -> Flashcard:
    return Flashcard(
        id=f"fc-{index}",
        type=request.flashcard_type.value,
        front=front,
        back=back,
        difficulty=request.difficulty.value,
        topic=request.topic,
        chapter=request.chapter,
        **extra,
    )


def parse_flashcards_from_text(text: str, request: FlashcardRequest) -> List[Flashcard]:
    """Read ``Q:``/``A:`` style pairs; continuation lines extend the open side."""
    cards: List[Dict[str, str]] = []
    current: Optional[Dict[str, str]] = None
    for line in (raw.strip() for raw in text.splitlines()):
        if not line:
            continue
        if _FRONT_PREFIX.match(line):
            if current:
                cards.append(current)
            current = {"front": _FRONT_PREFIX.sub("", line).strip(), "back": ""}
        elif _BACK_PREFIX.match(line) and current is not None:
            current["back"] = _BACK_PREFIX.sub("", line).strip()
        elif current is not None:
            side = "back" if current["back"] else "front"
            current[side] = f"{current[side]} {line}"
    if current:
        cards.append(current)

    return [
        _card(request, index, card["front"], card["back"])
        for index, card in enumerate(cards[: request.count], start=1)
    ]


def generate_basic_flashcards(request: FlashcardRequest) -> List[Flashcard]:
    """Sentence-based cards used when no model output is usable."""
    sentences = [s.strip() for s in _SENTENCE_END.split(request.content) if len(s.strip()) > 20]
    cards = []
    for index, sentence in enumerate(sentences[: request.count], start=1):
        front = sentence
        if request.flashcard_type == FlashcardType.CLOZE:
            words = sentence.split(" ")
            middle = len(words) // 2
            front = " ".join(words[:middle]) + " _____ " + " ".join(words[middle + 1:])
        extra: Dict[str, Any] = {}
        if request.flashcard_type == FlashcardType.IMAGE_BASED:
            extra = {
                "image_prompt": f"Generate an educational diagram or illustration that visually represents: {sentence}",
                "image_description": f"A visual aid to help understand: {sentence}",
            }
        cards.append(_card(request, index, front, sentence, **extra))
    return cards


class FlashcardGenerator:
    def __init__(self, agents: "AgentRegistry") -> None:
        self.agents = agents

    def generate(self, request: FlashcardRequest) -> FlashcardSet:
        cards = self._generate_with_agent(request)
        if not cards:
            metrics.increment("flashcards.fallback")
            cards = generate_basic_flashcards(request)
        metrics.increment("flashcards.generated", value=len(cards), type=request.flashcard_type.value)
        return FlashcardSet(flashcards=cards, total_generated=len(cards))

    def _generate_with_agent(self, request: FlashcardRequest) -> List[Flashcard]:
        agent = self.agents.find(STUDY_AGENT_ID)
        if agent is None:
            logger.info("Study agent unavailable; generating basic flashcards")
            return []
        try:
            text = agent.generate(build_flashcard_prompt(request), allow_tools=False).text
        except (AnimeAgentError, openai.OpenAIError) as exc:
            logger.warning("Flashcard generation failed, using basic cards: %s", exc)
            return []

        payload = extract_json_payload(text)
        if isinstance(payload, dict):
            cards = payload.get("flashcards")
            if not isinstance(cards, list):
                return []
            try:
                return [Flashcard.model_validate(card) for card in cards[: request.count]]
            except ValidationError as exc:
                logger.warning("Flashcard JSON did not validate: %s", exc)
                return []
        return parse_flashcards_from_text(text, request)
