"""Prose verification reports written by the anime agent."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List

import openai

from ..errors import AnimeAgentError
from ..models import VerificationReport, VerificationRequest, VerificationVerdict
from .pipeline import QuoteVerificationPipeline

if TYPE_CHECKING:
    from ..agents.registry import AgentRegistry

logger = logging.getLogger(__name__)

REPORT_AGENT_ID = "animeAgent"

REPORT_INSTRUCTIONS = """Please provide a well-formatted, friendly report that:
1. Summarizes the verification result clearly
2. Explains what was found (or not found)
3. Provides context about the quote if verified
4. Suggests next steps if not verified (e.g., checking alternative character names)
5. Uses emojis and formatting to make it engaging
6. Includes the confidence level and what it means

Make it informative but easy to understand."""


def _match_lines(verdict: VerificationVerdict) -> List[str]:
    lines = []
    for index, match in enumerate(verdict.matches, start=1):
        match_type = match.match_type.value if match.match_type else "criteria"
        lines.append(
            f'{index}. "{match.record.text}"\n'
            f"   - Character: {match.record.character}\n"
            f"   - Anime: {match.record.anime}\n"
            f"   - Match Type: {match_type}"
        )
    return lines


def build_report_prompt(request: VerificationRequest, verdict: VerificationVerdict) -> str:
    sections = [
        "Create a comprehensive verification report for the following anime quote verification:",
        "\n".join(request.context_lines()),
        f'Quote to verify: "{request.quote or ""}"',
        "Verification Result:\n"
        f"- Status: {'VERIFIED' if verdict.verified else 'NOT VERIFIED'}\n"
        f"- Confidence: {verdict.confidence.value.upper()}\n"
        f"- Message: {verdict.message}",
    ]
    if verdict.matches:
        sections.append("Matching Quotes Found:\n" + "\n\n".join(_match_lines(verdict)))
    sections.append(REPORT_INSTRUCTIONS)
    return "\n\n".join(section for section in sections if section)


def render_plain_report(request: VerificationRequest, verdict: VerificationVerdict) -> str:
    status = "VERIFIED" if verdict.verified else "NOT VERIFIED"
    lines = [f"Status: {status} (confidence: {verdict.confidence.value})", verdict.message]
    if request.quote:
        lines.insert(0, f'Quote: "{request.quote}"')
    lines.extend(request.context_lines())
    if verdict.matches:
        lines.append("")
        lines.extend(_match_lines(verdict))
    return "\n".join(lines)


class VerificationReporter:
    """Runs the pipeline and has the anime agent narrate the verdict."""

    def __init__(self, pipeline: QuoteVerificationPipeline, agents: "AgentRegistry") -> None:
        self.pipeline = pipeline
        self.agents = agents

    def run(self, request: VerificationRequest) -> VerificationReport:
        verdict = self.pipeline.verify(request)
        return VerificationReport(verdict=verdict, report=self.write_report(request, verdict))

    def write_report(self, request: VerificationRequest, verdict: VerificationVerdict) -> str:
        prompt = build_report_prompt(request, verdict)
        try:
            agent = self.agents.get(REPORT_AGENT_ID)
            text = agent.generate(prompt).text
        except (AnimeAgentError, openai.OpenAIError) as exc:
            logger.warning("Verification report generation failed, using plain report: %s", exc)
            return render_plain_report(request, verdict)
        return text or render_plain_report(request, verdict)
