"""
Static practice type configuration.

The configs form an unlock ladder ordered by required stability. The table is
checked exhaustively when this module is imported, so a practice type added to
the enum without a config fails at process start.
"""
from dataclasses import dataclass
from typing import Dict, List

from app.models.enums import PracticeType, Grade

BASE_PRACTICE_TYPE = PracticeType.FOREIGN_RECOGNITION


@dataclass(frozen=True)
class PracticeTypeConfig:
    """Configuration of one practice type."""
    type: PracticeType
    display_name: str
    description: str
    required_stability: float  # Days of stability needed to unlock
    difficulty_weight: float  # 0-1
    xp_multiplier: float
    instructions: str  # User-facing instructions
    available: bool  # Whether this practice type is implemented


PRACTICE_TYPE_CONFIGS: Dict[PracticeType, PracticeTypeConfig] = {
    PracticeType.FOREIGN_RECOGNITION: PracticeTypeConfig(
        type=PracticeType.FOREIGN_RECOGNITION,
        display_name="Recognition",
        description="See target language → write native language",
        required_stability=0,
        difficulty_weight=0.3,
        xp_multiplier=1.0,
        instructions="What does this word mean?",
        available=True,
    ),
    PracticeType.ENGLISH_PROMPT: PracticeTypeConfig(
        type=PracticeType.ENGLISH_PROMPT,
        display_name="Production",
        description="See native language → write target language",
        required_stability=3,
        difficulty_weight=0.5,
        xp_multiplier=1.5,
        instructions="How do you say this in the target language?",
        available=True,
    ),
    PracticeType.COMBINATION_SIMPLE: PracticeTypeConfig(
        type=PracticeType.COMBINATION_SIMPLE,
        display_name="Simple Combinations",
        description="Form sentences with 2-3 words",
        required_stability=7,
        difficulty_weight=0.6,
        xp_multiplier=2.0,
        instructions="Create a sentence using these words:",
        available=False,  # Coming soon
    ),
    PracticeType.TRANSFORMER_DRILLS: PracticeTypeConfig(
        type=PracticeType.TRANSFORMER_DRILLS,
        display_name="Transformations",
        description="Transform sentences (tense, person, etc.)",
        required_stability=14,
        difficulty_weight=0.7,
        xp_multiplier=2.5,
        instructions="Transform this sentence:",
        available=False,  # Coming soon
    ),
    PracticeType.COMBINATION_COMPLEX: PracticeTypeConfig(
        type=PracticeType.COMBINATION_COMPLEX,
        display_name="Complex Combinations",
        description="Form sentences with 4-6 words",
        required_stability=30,
        difficulty_weight=0.8,
        xp_multiplier=3.0,
        instructions="Create a sentence using all these words:",
        available=False,  # Coming soon
    ),
    PracticeType.CONVERSATION: PracticeTypeConfig(
        type=PracticeType.CONVERSATION,
        display_name="Conversation",
        description="Use in AI conversation",
        required_stability=60,
        difficulty_weight=0.9,
        xp_multiplier=4.0,
        instructions="Have a conversation using this vocabulary:",
        available=False,  # Coming soon
    ),
    PracticeType.FREEFLOW: PracticeTypeConfig(
        type=PracticeType.FREEFLOW,
        display_name="Freeflow Writing",
        description="Write freely with feedback",
        required_stability=60,
        difficulty_weight=0.9,
        xp_multiplier=5.0,
        instructions="Write freely about this topic:",
        available=False,  # Coming soon
    ),
}

# Base XP rewards by grade
BASE_XP_BY_GRADE: Dict[Grade, int] = {
    Grade.AGAIN: 5,  # Forgot, but still trying
    Grade.HARD: 15,  # Struggled but got it
    Grade.GOOD: 25,  # Standard success
    Grade.EASY: 40,  # Mastered
}

GRADE_LABELS: Dict[Grade, str] = {
    Grade.AGAIN: "again",
    Grade.HARD: "hard",
    Grade.GOOD: "good",
    Grade.EASY: "easy",
}


def validate_practice_type_configs() -> None:
    """
    Check the static tables are complete and consistent.

    Raises:
        RuntimeError: If a practice type or grade has no config, a config is
            filed under the wrong key, the ladder is out of order, or the base
            type is not unlocked from the start.
    """
    missing = [pt.value for pt in PracticeType if pt not in PRACTICE_TYPE_CONFIGS]
    if missing:
        raise RuntimeError(f"Missing practice type config for: {', '.join(missing)}")

    for practice_type, config in PRACTICE_TYPE_CONFIGS.items():
        if config.type != practice_type:
            raise RuntimeError(
                f"Practice type config for {practice_type.value} is declared as {config.type.value}"
            )

    ladder = [PRACTICE_TYPE_CONFIGS[pt].required_stability for pt in PracticeType]
    if ladder != sorted(ladder):
        raise RuntimeError("Practice type configs must be ordered by increasing required stability")

    base = PRACTICE_TYPE_CONFIGS[BASE_PRACTICE_TYPE]
    if not base.available or base.required_stability != 0:
        raise RuntimeError(f"Base practice type {BASE_PRACTICE_TYPE.value} must be available from stability 0")

    missing_grades = [g.name for g in Grade if g not in BASE_XP_BY_GRADE or g not in GRADE_LABELS]
    if missing_grades:
        raise RuntimeError(f"Missing grade config for: {', '.join(missing_grades)}")


def get_practice_config(practice_type: PracticeType) -> PracticeTypeConfig:
    return PRACTICE_TYPE_CONFIGS[practice_type]


def ladder_index(practice_type: PracticeType) -> int:
    """Position of a practice type on the unlock ladder."""
    return list(PracticeType).index(practice_type)


def available_practice_types() -> List[PracticeType]:
    return [pt for pt in PracticeType if PRACTICE_TYPE_CONFIGS[pt].available]


validate_practice_type_configs()
