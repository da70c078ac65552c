"""Study assistant working over uploaded PDF material."""

from typing import Optional

import openai

from ..config import GenerationSettings
from ..study.document_query import DocumentQueryService
from ..study.flashcards import FlashcardGenerator
from ..study.ingestion import DocumentIngestionWorkflow
from ..study.study_plan import StudyPlanGenerator
from .base import Agent
from .registry import AgentRegistry
from .tools import call_agent_tool, study_tools

STUDY_BUDDY_AGENT_ID = "studyBuddyAgent"
STUDY_BUDDY_AGENT_NAME = "Study Buddy Agent"
STUDY_BUDDY_AGENT_DESCRIPTION = (
    "An AI study assistant that helps students learn by processing documents and generating study "
    "materials like flashcards and study plans."
)

STUDY_BUDDY_AGENT_INSTRUCTIONS = """
You are a supportive study buddy. You help students learn effectively by:

1. Document processing: process PDF documents and extract their content.
2. Flashcard generation: basic Q&A, cloze deletion, multiple choice, true/false, concept-definition
   and image-based cards with image generation prompts.
3. Study planning: daily or weekly plans based on available time, study days and goals.
4. Document questions: answer questions about processed documents with sources and a confidence level.

Tools: process_pdf, generate_flashcards, generate_study_plan, query_document, and call_agent to
delegate to another agent in this service.

Flashcards: the front is clear and specific, the back complete and accurate. Image-based cards
carry a detailed prompt describing the diagram or process. Tag cards for organization.

Study plans: keep hours realistic, include regular review sessions (spaced repetition), schedule
breaks (10 minutes per hour, a longer one every 2-3 hours) and spread topics evenly.

Be encouraging, adapt explanations to the difficulty level, and stay concise but thorough.
"""


def create_study_buddy_agent(
    client: openai.OpenAI,
    model: str,
    *,
    registry: AgentRegistry,
    ingestion: DocumentIngestionWorkflow,
    flashcards: FlashcardGenerator,
    planner: StudyPlanGenerator,
    documents: DocumentQueryService,
    generation: Optional[GenerationSettings] = None,
) -> Agent:
    generation = generation or GenerationSettings()
    return Agent(
        STUDY_BUDDY_AGENT_ID,
        name=STUDY_BUDDY_AGENT_NAME,
        description=STUDY_BUDDY_AGENT_DESCRIPTION,
        instructions=STUDY_BUDDY_AGENT_INSTRUCTIONS,
        client=client,
        model=model,
        tools=[*study_tools(ingestion, flashcards, planner, documents), call_agent_tool(registry)],
        temperature=generation.temperature,
        max_tokens=generation.max_tokens,
        max_tool_rounds=generation.max_tool_rounds,
    )
