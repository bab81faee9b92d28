"""
Guided four-question recommendation dialogue.

The dialogue is an immutable RecommendationState; advance() consumes one
answer and returns the next state. Every answer is accepted: text that
matches none of a slot's options leaves the slot at its default.
"""
import re

from logger import get_logger
from models import (
    Budget,
    PerformanceNeeds,
    PrimaryUse,
    RecommendationState,
    RecommendationStep,
    SizePreference,
    UserPreference,
)

logger = get_logger("dialogue")

STEP_ORDER = [
    RecommendationStep.BUDGET,
    RecommendationStep.PRIMARY_USE,
    RecommendationStep.SIZE,
    RecommendationStep.PERFORMANCE_NEEDS,
    RecommendationStep.COMPLETE,
]

# step -> (preference field, [(value, keywords), ...], default)
SLOT_OPTIONS = {
    RecommendationStep.BUDGET: (
        "budget",
        [
            (Budget.LOW, ["1", "low", "under 500", "cheap"]),
            (Budget.HIGH, ["3", "high", "over 1000", "premium"]),
            (Budget.MEDIUM, ["2", "medium"]),
        ],
        Budget.MEDIUM,
    ),
    RecommendationStep.PRIMARY_USE: (
        "primary_use",
        [
            (PrimaryUse.PRODUCTIVITY, ["1", "productivity", "work", "office"]),
            (PrimaryUse.CREATIVE, ["2", "creative", "design", "edit", "art"]),
            (PrimaryUse.GAMING, ["3", "gaming", "game"]),
            (PrimaryUse.BROWSING, ["4", "browsing", "browse", "web", "stream"]),
        ],
        PrimaryUse.PRODUCTIVITY,
    ),
    RecommendationStep.SIZE: (
        "size",
        [
            (SizePreference.COMPACT, ["1", "compact", "small", "portable"]),
            (SizePreference.LARGE, ["3", "large", "big"]),
            (SizePreference.STANDARD, ["2", "standard"]),
        ],
        SizePreference.STANDARD,
    ),
    RecommendationStep.PERFORMANCE_NEEDS: (
        "performance_needs",
        [
            (PerformanceNeeds.BASIC, ["1", "basic", "light"]),
            (PerformanceNeeds.HIGH, ["3", "high", "power", "intensive"]),
            (PerformanceNeeds.MODERATE, ["2", "moderate"]),
        ],
        PerformanceNeeds.MODERATE,
    ),
}


def _keyword_in(keyword: str, text: str) -> bool:
    # Menu numbers must stand alone so "under 500" never reads as "5"
    if keyword.isdigit():
        return re.search(rf"(?<!\d){keyword}(?!\d)", text) is not None
    return keyword in text


def match_option(step: RecommendationStep, text: str):
    """Map an answer to the slot value for ``step``, falling back to the default."""
    _, options, default = SLOT_OPTIONS[step]
    text = text.lower()
    for value, keywords in options:
        if any(_keyword_in(keyword, text) for keyword in keywords):
            return value
    return default


def start() -> RecommendationState:
    return RecommendationState(step=RecommendationStep.BUDGET, preference=UserPreference())


def next_step(step: RecommendationStep) -> RecommendationStep:
    if step == RecommendationStep.COMPLETE:
        return step
    return STEP_ORDER[STEP_ORDER.index(step) + 1]


def advance(state: RecommendationState, text: str) -> RecommendationState:
    """Record the answer for the current step and move to the next one."""
    if state.complete:
        return state

    field, _, _ = SLOT_OPTIONS[state.step]
    value = match_option(state.step, text)
    preference = state.preference.model_copy(update={field: value})
    new_state = RecommendationState(step=next_step(state.step), preference=preference)

    logger.debug(f"Dialogue {state.step.value} -> {new_state.step.value} | {field}={value.value}")
    return new_state

