"""Anime quote and catalog assistant."""

from typing import Callable, Optional

import openai

from ..a2a.client import A2AClient
from ..config import GenerationSettings
from ..sources.animechan import AnimechanClient
from ..sources.myanimelist import MyAnimeListClient
from ..verification.pipeline import QuoteVerificationPipeline
from .base import Agent
from .registry import AgentRegistry
from .tools import a2a_tool, call_agent_tool, catalog_tools, quote_tools

ANIME_AGENT_ID = "animeAgent"
ANIME_AGENT_NAME = "Anime Agent"
ANIME_AGENT_DESCRIPTION = (
    "An AI assistant that helps with anime quotes, verifies quote accuracy, and provides information about "
    "anime series, characters, rankings, and details using the Animechan and MyAnimeList APIs."
)

ANIME_AGENT_INSTRUCTIONS = """
You are a knowledgeable anime assistant specialized in anime quotes, character information and anime data.
You help users with:

1. Quote retrieval: random quotes, quotes by anime title, or quotes by character name (Animechan).
2. Quote verification: check whether a quote is accurate and which character said it.
3. Anime search and discovery: search titles, fetch details and rankings (MyAnimeList).
4. Fact checking: answer questions such as "Did <character> really say <quote>?"

Tools:
- get_random_quote, get_quotes_by_anime, get_quotes_by_character, verify_anime_quote
- search_anime, get_anime_details, get_anime_rankings, get_seasonal_anime
- call_agent to delegate to another agent in this service (e.g. studyBuddyAgent)
- a2a_communicate to reach an agent on another server

Guidelines:
- When verifying quotes, check both the character and the anime sources.
- If a quote cannot be verified, explain why (missing from the database, name variations, paraphrasing).
- Always attribute quotes as: "Quote" - Character (Anime).
- For searches, use search_anime first, then get_anime_details for more information.
- For "top anime" or "best anime" questions, use get_anime_rankings.
- The upstream APIs are rate limited; avoid redundant calls.
- When presenting anime details, include ratings, rankings, genres and synopsis when available.

Be friendly and conversational. If verification fails, say so clearly and suggest alternatives.
"""


def create_anime_agent(
    client: openai.OpenAI,
    model: str,
    *,
    registry: AgentRegistry,
    animechan: AnimechanClient,
    catalog: MyAnimeListClient,
    pipeline: QuoteVerificationPipeline,
    a2a_client_factory: Callable[[Optional[str]], A2AClient],
    generation: Optional[GenerationSettings] = None,
) -> Agent:
    generation = generation or GenerationSettings()
    tools = [
        *quote_tools(animechan, pipeline),
        *catalog_tools(catalog),
        call_agent_tool(registry),
        a2a_tool(a2a_client_factory),
    ]
    return Agent(
        ANIME_AGENT_ID,
        name=ANIME_AGENT_NAME,
        description=ANIME_AGENT_DESCRIPTION,
        instructions=ANIME_AGENT_INSTRUCTIONS,
        client=client,
        model=model,
        tools=tools,
        temperature=generation.temperature,
        max_tokens=generation.max_tokens,
        max_tool_rounds=generation.max_tool_rounds,
    )
