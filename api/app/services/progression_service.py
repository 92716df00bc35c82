"""
Progression service: XP rewards and practice type unlocks.

All functions are pure; callers persist the results.
"""
import math
from typing import Iterable, List, Optional, Tuple

from app.core.exceptions import ValidationError
from app.models.enums import Grade, PracticeType
from app.services.practice_types import (
    BASE_XP_BY_GRADE,
    PRACTICE_TYPE_CONFIGS,
    PracticeTypeConfig,
    ladder_index,
)

STABILITY_BONUS_DAYS = 30  # Stability at which the bonus reaches 1x
MAX_STABILITY_BONUS = 2
STABILITY_BONUS_WEIGHT = 0.5

TRANSITION_STABILITY_FACTOR = 0.6
TRANSITION_DIFFICULTY_STEP = 0.5
MAX_DIFFICULTY = 10.0

QUICK_RESPONSE_MS = 3000
SLOW_RESPONSE_MS = 15000


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_xp(grade: int, practice_config: PracticeTypeConfig, current_stability: float) -> int:
    """
    Calculate XP reward for an answer.

    Higher grades, harder practice types and more stable words earn more XP:
    base * multiplier * (1 + min(stability / 30, 2) * 0.5)

    Args:
        grade: Recall grade (1-4)
        practice_config: Config of the practice type that was answered
        current_stability: Stability of the word before the review

    Returns:
        XP as a non-negative integer

    Raises:
        ValidationError: If grade is outside 1-4 or stability is negative
    """
    try:
        grade = Grade(grade)
    except ValueError:
        raise ValidationError(f"Invalid grade: {grade}. Must be between 1 and 4")
    if current_stability < 0:
        raise ValidationError(f"Stability must be >= 0, got {current_stability}")

    base_xp = BASE_XP_BY_GRADE[grade]
    stability_bonus = min(current_stability / STABILITY_BONUS_DAYS, MAX_STABILITY_BONUS)
    return _round_half_up(
        base_xp * practice_config.xp_multiplier * (1 + stability_bonus * STABILITY_BONUS_WEIGHT)
    )


def get_unlocked_practice_types(stability: float) -> List[PracticeType]:
    """All implemented practice types unlocked at this stability, in ladder order."""
    return [
        config.type
        for config in PRACTICE_TYPE_CONFIGS.values()
        if stability >= config.required_stability and config.available
    ]


def check_unlocks(new_stability: float, currently_unlocked: Iterable[str]) -> List[PracticeType]:
    """
    Return the practice types newly unlocked at new_stability.

    Only the delta is returned; types already in currently_unlocked and
    unimplemented types are never included.
    """
    already = {t.value if isinstance(t, PracticeType) else t for t in currently_unlocked}
    return [pt for pt in get_unlocked_practice_types(new_stability) if pt.value not in already]


def merge_unlocked(currently_unlocked: Iterable[str], newly_unlocked: Iterable[PracticeType]) -> List[str]:
    """Union of unlocked types, keeping the existing order and appending new ones."""
    merged = list(currently_unlocked)
    for practice_type in newly_unlocked:
        if practice_type.value not in merged:
            merged.append(practice_type.value)
    return merged


def apply_transition_penalty(stability: float, difficulty: float) -> Tuple[float, float]:
    """
    Penalty applied when a word moves to a newly unlocked, harder practice type.

    Stability drops by 40% and difficulty rises by 0.5 (capped at 10), so the
    word comes back sooner until it is mastered in the new format.
    """
    return (
        stability * TRANSITION_STABILITY_FACTOR,
        min(difficulty + TRANSITION_DIFFICULTY_STEP, MAX_DIFFICULTY),
    )


def is_harder_transition(previous_type: Optional[str], new_type: PracticeType) -> bool:
    """True when new_type sits above previous_type on the unlock ladder."""
    if previous_type is None:
        return False
    try:
        previous = PracticeType(previous_type)
    except ValueError:
        return False
    return ladder_index(new_type) > ladder_index(previous)


def get_rating_guidance(response_time_ms: int) -> Tuple[Grade, str]:
    """Suggest a grade from how long the answer took."""
    if response_time_ms < QUICK_RESPONSE_MS:
        return Grade.EASY, "Quick and confident? Press Easy!"
    if response_time_ms < SLOW_RESPONSE_MS:
        return Grade.GOOD, "Got it after thinking? Press Good."
    return Grade.HARD, "Struggled but remembered? Press Hard."
