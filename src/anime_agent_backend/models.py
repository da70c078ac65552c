from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


UNKNOWN = "Unknown"


class CamelModel(BaseModel):
    """Base for payloads exchanged with agents and HTTP callers in camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# --- Quotes and verification ---

class MatchType(str, Enum):
    """How a candidate quote matched the quote being verified."""
    EXACT = "exact"
    PARTIAL = "partial"
    SIMILAR = "similar"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class QuoteRecord(BaseModel):
    """One attributed quotation; every field is non-empty after normalization."""

    text: str = Field(alias="quote")
    anime: str = UNKNOWN
    character: str = UNKNOWN

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_payload(self) -> Dict[str, str]:
        return {"quote": self.text, "anime": self.anime, "character": self.character}


class QuotePage(BaseModel):
    quotes: List[QuoteRecord] = Field(default_factory=list)
    page: int = 1

    def to_payload(self) -> Dict[str, Any]:
        return {"quotes": [quote.to_payload() for quote in self.quotes], "page": self.page}


class MatchResult(BaseModel):
    """A candidate that satisfied a matching rule.

    ``match_type`` is ``None`` only for evidence records returned when no quote text
    was supplied and matching was skipped.
    """

    record: QuoteRecord
    match_type: Optional[MatchType] = None

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = self.record.to_payload()
        payload["matchType"] = self.match_type.value if self.match_type else None
        return payload


class VerificationRequest(CamelModel):
    quote: Optional[str] = Field(None, description="The quote text to verify")
    character: Optional[str] = Field(None, description="The character who allegedly said the quote")
    anime: Optional[str] = Field(None, description="The anime the quote is from")
    api_key: Optional[str] = Field(None, description="Optional Animechan supporter key")

    def context_lines(self) -> List[str]:
        lines = []
        if self.character:
            lines.append(f"Character: {self.character}")
        if self.anime:
            lines.append(f"Anime: {self.anime}")
        return lines


class VerificationVerdict(BaseModel):
    """Terminal result of a verification.

    ``matches`` keeps candidate-pool discovery order; it is not sorted by match strength.
    """

    verified: bool
    confidence: Confidence
    matches: List[MatchResult] = Field(default_factory=list)
    message: str

    model_config = ConfigDict(frozen=True)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "verified": self.verified,
            "confidence": self.confidence.value,
            "matches": [match.to_payload() for match in self.matches],
            "message": self.message,
        }


class VerificationReport(BaseModel):
    verdict: VerificationVerdict
    report: str

    def to_payload(self) -> Dict[str, Any]:
        payload = self.verdict.to_payload()
        payload["report"] = self.report
        return payload


# --- Anime catalog ---

class AnimeSummary(CamelModel):
    id: int
    title: str
    synopsis: Optional[str] = None
    picture: Optional[str] = None
    rating: Optional[float] = None
    rank: Optional[int] = None
    popularity: Optional[int] = None
    episodes: Optional[int] = None
    status: Optional[str] = None
    type: Optional[str] = None
    start_date: Optional[str] = None


class AnimeDetails(AnimeSummary):
    end_date: Optional[str] = None
    genres: List[str] = Field(default_factory=list)
    users_listed: Optional[int] = None


class AnimeSearchResult(CamelModel):
    results: List[AnimeSummary] = Field(default_factory=list)
    total: int = 0


class AnimeRankingResult(CamelModel):
    results: List[AnimeSummary] = Field(default_factory=list)
    ranking_type: str = "all"
    total: int = 0


class SeasonalAnimeResult(CamelModel):
    results: List[AnimeSummary] = Field(default_factory=list)
    season: str
    total: int = 0


# --- Documents ---

class PdfMetadata(CamelModel):
    pages: int = 0
    title: Optional[str] = None
    author: Optional[str] = None
    creation_date: Optional[str] = None


class ProcessedDocument(CamelModel):
    document_id: str
    file_path: str
    text_content: str
    metadata: PdfMetadata
    file_size: int


class TextChunk(CamelModel):
    text: str
    index: int
    document_id: str
    total_chunks: int
    char_start: int = 0


class IngestionResult(CamelModel):
    document_id: str
    chunks_count: int
    stored: bool
    file_path: Optional[str] = None


class DocumentQueryRequest(CamelModel):
    question: str = Field(..., description="The question to answer about the document content")
    chapter: Optional[str] = Field(None, description="Optional chapter or section identifier")
    topic: Optional[str] = Field(None, description="Optional topic filter")
    document_id: Optional[str] = Field(None, description="Optional document ID to query")


class DocumentSourceRef(CamelModel):
    chapter: Optional[str] = None
    page: Optional[int] = None
    section: Optional[str] = None
    document_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class DocumentAnswer(CamelModel):
    answer: str
    context: List[str] = Field(default_factory=list)
    sources: List[DocumentSourceRef] = Field(default_factory=list)
    confidence: Confidence = Confidence.MEDIUM


# --- Flashcards ---

class FlashcardType(str, Enum):
    BASIC = "basic"
    CLOZE = "cloze"
    MULTIPLE_CHOICE = "multiple-choice"
    IMAGE_BASED = "image-based"
    TRUE_FALSE = "true-false"
    CONCEPT_DEFINITION = "concept-definition"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class FlashcardRequest(CamelModel):
    content: str = Field(..., description="Text content to generate flashcards from")
    flashcard_type: FlashcardType = FlashcardType.BASIC
    count: int = Field(10, ge=1, le=50)
    difficulty: Difficulty = Difficulty.MEDIUM
    topic: Optional[str] = None
    chapter: Optional[str] = None


class Flashcard(CamelModel):
    id: str
    type: str
    front: str
    back: str = ""
    difficulty: str
    topic: Optional[str] = None
    chapter: Optional[str] = None
    image_prompt: Optional[str] = None
    image_description: Optional[str] = None
    tags: Optional[List[str]] = None

    model_config = ConfigDict(extra="ignore")


class FlashcardSet(CamelModel):
    flashcards: List[Flashcard] = Field(default_factory=list)
    total_generated: int = 0


# --- Study plans ---

class PlanType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"


class StudyStyle(str, Enum):
    DISTRIBUTED = "distributed"
    INTENSIVE = "intensive"
    BALANCED = "balanced"


class StudyDocumentInfo(CamelModel):
    chapters: Optional[List[str]] = None
    total_pages: Optional[int] = None
    topics: Optional[List[str]] = None


class StudyPlanRequest(CamelModel):
    document_metadata: Optional[StudyDocumentInfo] = None
    study_hours_per_day: float = Field(2.0, ge=0.5, le=12)
    target_completion_date: Optional[date] = None
    study_days_per_week: int = Field(5, ge=1, le=7)
    plan_type: PlanType = PlanType.DAILY
    study_style: StudyStyle = StudyStyle.BALANCED
    focus_areas: Optional[List[str]] = None
    current_date: Optional[date] = None


class StudySession(CamelModel):
    time: str
    duration: float
    topic: str
    type: str
    notes: Optional[str] = None


class StudyBreak(CamelModel):
    time: str
    duration: float
    reason: str


class StudyDay(CamelModel):
    date: str
    day_of_week: str
    sessions: List[StudySession] = Field(default_factory=list)
    total_hours: float = 0
    breaks: List[StudyBreak] = Field(default_factory=list)


class StudyPlan(CamelModel):
    plan_type: str
    start_date: str
    end_date: Optional[str] = None
    schedule: List[StudyDay] = Field(default_factory=list)
    total_days: int = 0
    total_hours: float = 0
    recommendations: List[str] = Field(default_factory=list)
