"""
The fixed six-step check-in flow.

Steps are strictly ordered; progress and titles are looked up by position, so
the order of ``STEP_ORDER`` must never change.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CheckInStep(str, Enum):
    WELCOME = "welcome"
    CATEGORY_SELECTION = "categorySelection"
    CATEGORY_DISCUSSION = "categoryDiscussion"
    REFLECTION = "reflection"
    ACTION_ITEMS = "actionItems"
    COMPLETION = "completion"


STEP_ORDER: tuple[CheckInStep, ...] = (
    CheckInStep.WELCOME,
    CheckInStep.CATEGORY_SELECTION,
    CheckInStep.CATEGORY_DISCUSSION,
    CheckInStep.REFLECTION,
    CheckInStep.ACTION_ITEMS,
    CheckInStep.COMPLETION,
)

TOTAL_STEPS = len(STEP_ORDER)
FIRST_STEP = STEP_ORDER[0]
TERMINAL_STEP = STEP_ORDER[-1]


@dataclass(frozen=True, slots=True)
class StepInfo:
    title: str
    description: str


STEP_INFO: dict[CheckInStep, StepInfo] = {
    CheckInStep.WELCOME: StepInfo("Welcome", "Prepare for meaningful conversation"),
    CheckInStep.CATEGORY_SELECTION: StepInfo("Choose Topics", "Select topics to discuss together"),
    CheckInStep.CATEGORY_DISCUSSION: StepInfo("Discuss", "Share your thoughts openly"),
    CheckInStep.REFLECTION: StepInfo("Reflect", "Reflect on your conversation"),
    CheckInStep.ACTION_ITEMS: StepInfo("Action Items", "Set goals for growth"),
    CheckInStep.COMPLETION: StepInfo("Complete", "Great work connecting!"),
}


def position(step: CheckInStep) -> int:
    """Zero-based index of ``step`` in the flow."""
    return STEP_ORDER.index(CheckInStep(step))


def next_step(step: CheckInStep) -> Optional[CheckInStep]:
    """The following step, or None at the terminal step."""
    idx = position(step)
    if idx + 1 >= TOTAL_STEPS:
        return None
    return STEP_ORDER[idx + 1]


def previous_step(step: CheckInStep) -> Optional[CheckInStep]:
    """The preceding step, or None at the first step."""
    idx = position(step)
    if idx == 0:
        return None
    return STEP_ORDER[idx - 1]


def progress_for(step: CheckInStep) -> float:
    """
    Fraction of the flow reached, counting positions from 1 so that
    ``welcome`` is already non-zero.
    """
    return (position(step) + 1) / TOTAL_STEPS


def step_info(step: CheckInStep) -> StepInfo:
    return STEP_INFO[CheckInStep(step)]


def default_can_proceed(step: CheckInStep, selected_category_count: int) -> bool:
    """
    Gating applied when the caller supplies no predicate of its own.
    - categorySelection needs at least one selected category
    - completion never proceeds
    """
    step = CheckInStep(step)
    if step is CheckInStep.CATEGORY_SELECTION:
        return selected_category_count > 0
    if step is CheckInStep.COMPLETION:
        return False
    return True
