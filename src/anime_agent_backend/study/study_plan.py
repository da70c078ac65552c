"""Study plan generation with a deterministic schedule fallback."""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import TYPE_CHECKING, List, Optional

import openai
from pydantic import ValidationError

from ..errors import AnimeAgentError
from ..llm_output import extract_json_payload
from ..models import StudyBreak, StudyDay, StudyPlan, StudyPlanRequest, StudySession, StudyStyle
from ..telemetry import metrics

if TYPE_CHECKING:
    from ..agents.registry import AgentRegistry

logger = logging.getLogger(__name__)

STUDY_AGENT_ID = "studyBuddyAgent"
DEFAULT_PLAN_DAYS = 30
DAY_START_MINUTES = 9 * 60
MAX_SESSION_HOURS = 1.5
SESSION_GAP_MINUTES = 30
WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
RECOMMENDATIONS = [
    "Study in a quiet, distraction-free environment",
    "Take breaks to maintain focus",
    "Review previous material regularly",
    "Stay consistent with the schedule",
]


def _clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def plan_window(request: StudyPlanRequest, today: Optional[date] = None) -> tuple[date, int]:
    """Return the start date and the number of calendar days the plan covers."""
    start = request.current_date or today or date.today()
    if request.target_completion_date:
        return start, max((request.target_completion_date - start).days, 0)
    return start, DEFAULT_PLAN_DAYS


def build_study_plan_prompt(request: StudyPlanRequest, today: Optional[date] = None) -> str:
    start, days = plan_window(request, today)
    plan_type = request.plan_type.value
    lines = [
        f"Generate a {plan_type} study plan with the following requirements:",
        "",
        "Study Parameters:",
        f"- Available hours per day: {request.study_hours_per_day}",
        f"- Study days per week: {request.study_days_per_week}",
        f"- Total days available: {days}",
        f"- Study style: {request.study_style.value}",
        f"- Start date: {start.isoformat()}",
    ]
    if request.target_completion_date:
        lines.append(f"- Target completion date: {request.target_completion_date.isoformat()}")

    info = request.document_metadata
    if info:
        lines += ["", "Document Information:"]
        if info.chapters:
            lines.append(f"- Chapters: {', '.join(info.chapters)}")
        if info.total_pages:
            lines.append(f"- Total pages: {info.total_pages}")
        if info.topics:
            lines.append(f"- Topics: {', '.join(info.topics)}")
    if request.focus_areas:
        lines += ["", f"Focus Areas: {', '.join(request.focus_areas)}"]

    lines += [
        "",
        "Requirements:",
        f"- Create {plan_type} schedule",
        "- Include review sessions (spaced repetition)",
        "- Include breaks (5-10 min every hour, longer break every 2-3 hours)",
        "- Distribute topics evenly",
    ]
    if request.study_style == StudyStyle.DISTRIBUTED:
        lines.append("- Use spaced learning (review previous days)")
    elif request.study_style == StudyStyle.INTENSIVE:
        lines.append("- Use intensive learning (more new material per day)")

    lines += [
        "",
        "Return as JSON with keys planType, startDate, endDate, schedule (a list of days with "
        "date, dayOfWeek, sessions [time, duration, topic, type, notes], totalHours and breaks "
        "[time, duration, reason]), totalDays, totalHours and recommendations.",
    ]
    return "\n".join(lines)


def generate_basic_study_plan(request: StudyPlanRequest, today: Optional[date] = None) -> StudyPlan:
    start, days = plan_window(request, today)
    chapters = (request.document_metadata and request.document_metadata.chapters) or [
        f"Chapter {index + 1}" for index in range(math.ceil(days / 3))
    ]

    schedule: List[StudyDay] = []
    chapter_index = 0
    for offset in range(days):
        current = start + timedelta(days=offset)
        if request.study_days_per_week < 7 and current.weekday() >= 5:
            continue

        is_review = offset % 3 == 0
        sessions: List[StudySession] = []
        breaks: List[StudyBreak] = []
        total = 0.0
        cursor = DAY_START_MINUTES
        while total < request.study_hours_per_day:
            duration = min(MAX_SESSION_HOURS, request.study_hours_per_day - total)
            sessions.append(
                StudySession(
                    time=_clock(cursor),
                    duration=duration,
                    topic=chapters[chapter_index % len(chapters)],
                    type="review" if is_review else "new-material",
                    notes="Review previous material" if is_review else "Focus on new concepts",
                )
            )
            total += duration
            cursor += round(duration * 60)
            if not breaks:
                breaks.append(StudyBreak(time=_clock(cursor), duration=15, reason="Mid-session break"))
            cursor += SESSION_GAP_MINUTES

        schedule.append(
            StudyDay(
                date=current.isoformat(),
                day_of_week=WEEKDAY_NAMES[current.weekday()],
                sessions=sessions,
                total_hours=round(total, 1),
                breaks=breaks,
            )
        )
        chapter_index += 1

    return StudyPlan(
        plan_type=request.plan_type.value,
        start_date=start.isoformat(),
        end_date=request.target_completion_date.isoformat() if request.target_completion_date else None,
        schedule=schedule,
        total_days=len(schedule),
        total_hours=round(sum(day.total_hours for day in schedule), 1),
        recommendations=list(RECOMMENDATIONS),
    )


class StudyPlanGenerator:
    def __init__(self, agents: "AgentRegistry") -> None:
        self.agents = agents

    def generate(self, request: StudyPlanRequest) -> StudyPlan:
        plan = self._generate_with_agent(request)
        if plan is None:
            metrics.increment("study_plan.fallback")
            plan = generate_basic_study_plan(request)
        return plan

    def _generate_with_agent(self, request: StudyPlanRequest) -> Optional[StudyPlan]:
        agent = self.agents.find(STUDY_AGENT_ID)
        if agent is None:
            return None
        try:
            text = agent.generate(build_study_plan_prompt(request), allow_tools=False).text
        except (AnimeAgentError, openai.OpenAIError) as exc:
            logger.warning("Study plan generation failed, using basic plan: %s", exc)
            return None

        payload = extract_json_payload(text)
        if not isinstance(payload, dict):
            return None
        try:
            return StudyPlan.model_validate(payload)
        except ValidationError as exc:
            logger.warning("Study plan JSON did not validate: %s", exc)
            return None
