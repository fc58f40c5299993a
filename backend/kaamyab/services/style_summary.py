"""Short neutral prose summary for an operating style profile."""
from __future__ import annotations

import logging
from typing import Optional, Tuple

import openai

from kaamyab.api.schemas.operating_style import OperatingStyleDimensions, OperatingStyleProfile
from kaamyab.core.config import settings
from kaamyab.observability.tracing import trace

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = """You are an observational analyst. Your responses must be:
- Strictly observational (describe what IS, not what SHOULD BE)
- Neutral tone (no good/bad, no judgment, no praise)
- 1-2 sentences maximum
- No advice, recommendations, or suggestions
- No commands or imperatives
- No motivational language

Example good responses:
- "This person tends to work through tasks early in the day and maintains detailed plans."
- "Completion patterns show variable timing throughout the day with frequent mid-plan adjustments."

Example bad responses:
- "Great job completing your tasks!" (praise)
- "You should try working in the morning." (advice)
- "Keep up the good work!" (motivational)"""


def describe_dimension(value: float, left_label: str, right_label: str) -> str:
    if value < 0.3:
        return f"leans toward {left_label}"
    if value > 0.7:
        return f"leans toward {right_label}"
    return f"balanced between {left_label} and {right_label}"


def generate_template_summary(dimensions: OperatingStyleDimensions, plan_count: int) -> str:
    parts = []
    if dimensions.planning_density > 0.7:
        parts.append("tends to create detailed, task-rich plans")
    elif dimensions.planning_density < 0.3:
        parts.append("tends to prefer lighter, focused plans")

    if dimensions.execution_follow_through > 0.7:
        parts.append("consistently completes most planned tasks")
    elif dimensions.execution_follow_through < 0.3:
        parts.append("often starts more tasks than finishes")

    if dimensions.adjustment_behavior > 0.7:
        parts.append("frequently adjusts plans mid-cycle")
    elif dimensions.adjustment_behavior < 0.3:
        parts.append("maintains steady task schedules")

    if dimensions.cadence_preference < 0.3:
        parts.append("works primarily in the morning hours")
    elif dimensions.cadence_preference > 0.7:
        parts.append("works at varied times throughout the day")

    if not parts:
        return (
            f"Based on {plan_count} completed plans, this person shows balanced "
            "working patterns across all dimensions."
        )
    return f"Based on {plan_count} completed plans, this person {' and '.join(parts)}."


def _build_user_prompt(profile: OperatingStyleProfile) -> str:
    dims = profile.dimensions
    metrics = profile.metrics
    planning = describe_dimension(dims.planning_density, "Light Planner", "Detailed Planner")
    execution = describe_dimension(dims.execution_follow_through, "Starter", "Finisher")
    adjustment = describe_dimension(dims.adjustment_behavior, "Steady", "Adaptive")
    cadence = describe_dimension(dims.cadence_preference, "Morning Focus", "Variable Rhythm")
    return (
        f"Based on {metrics.total_plans} completed plans, describe this person's working patterns:\n"
        f"- Planning style: {planning} (avg {metrics.avg_tasks_per_week:.1f} tasks/week)\n"
        f"- Execution follow-through: {execution} ({metrics.avg_completion_rate * 100:.0f}% avg completion)\n"
        f"- Adjustment behavior: {adjustment}\n"
        f"- Work cadence: {cadence}\n\n"
        "Write a brief, neutral observation. Be specific but not judgmental."
    )


def request_style_summary(
    profile: OperatingStyleProfile,
    request_id: Optional[str] = None,
) -> Tuple[str, str]:
    """Return ``(summary, source)`` where source is ``"ai"`` or ``"template"``."""
    fallback = generate_template_summary(profile.dimensions, profile.metrics.total_plans)
    api_key = settings.openai_api_key
    if not api_key:
        logger.info("OPENAI_API_KEY missing; using template style summary")
        return fallback, "template"

    client = openai.OpenAI(api_key=api_key)
    metadata = {"model": settings.openai_model, "plans": profile.metrics.total_plans}
    try:
        with trace("operating_style.summary", metadata=metadata, request_id=request_id):
            completion = client.chat.completions.create(
                model=settings.openai_model,
                messages=[
                    {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
                    {"role": "user", "content": _build_user_prompt(profile)},
                ],
                max_tokens=150,
                temperature=0.3,
            )
    except Exception:
        logger.warning("Style summary request failed; using template", exc_info=True)
        return fallback, "template"

    content = (completion.choices[0].message.content or "").strip() if completion.choices else ""
    if not content:
        logger.info("Style summary came back empty; using template")
        return fallback, "template"
    return content, "ai"
