"""Interview question allocation across the fixed categories."""

import logging
import random
from typing import Mapping, Optional

from assessments.ports import QuestionGenerator
from assessments.schemas import CATEGORIES, JobAssessmentConfig, Question, QuestionCategory
from core.utils.formatting import round_half_up

logger = logging.getLogger(__name__)

# Seconds allowed per question, by category
CATEGORY_TIME_LIMITS: dict[QuestionCategory, int] = {
    QuestionCategory.CODING: 900,
    QuestionCategory.DSA: 600,
    QuestionCategory.EDUCATION: 300,
    QuestionCategory.ACHIEVEMENTS: 420,
    QuestionCategory.PROBLEM_SOLVING: 720,
}
DEFAULT_TIME_LIMIT = 600


def time_limit_for(category: QuestionCategory) -> int:
    return CATEGORY_TIME_LIMITS.get(category, DEFAULT_TIME_LIMIT)


def allocate_question_counts(
    total_questions: int,
    distribution: Mapping[QuestionCategory, float],
) -> dict[QuestionCategory, int]:
    """
    Number of questions per category.

    Each category is rounded independently, so the counts may not add up to
    ``total_questions``; that is accepted as is. Categories that round to zero
    are left out.

    Args:
        total_questions: Target question count
        distribution: Percentage per category

    Returns:
        Positive counts, in category order
    """
    counts: dict[QuestionCategory, int] = {}
    for category in CATEGORIES:
        percentage = distribution.get(category, 0)
        count = round_half_up(percentage / 100 * total_questions)
        if count > 0:
            counts[category] = count

    allocated = sum(counts.values())
    if allocated != total_questions:
        logger.info(
            f"Allocated {allocated} questions for a target of {total_questions} "
            f"(independent rounding)"
        )
    return counts


async def build_question_set(
    config: JobAssessmentConfig,
    generator: QuestionGenerator,
    rng: Optional[random.Random] = None,
) -> list[Question]:
    """
    Generate one question per allocated slot and shuffle the set.

    Args:
        config: Job assessment settings
        generator: Question source
        rng: Random source for the shuffle

    Returns:
        Shuffled questions
    """
    counts = allocate_question_counts(
        config.total_interview_questions, config.question_distribution
    )

    questions: list[Question] = []
    for category, count in counts.items():
        for index in range(count):
            questions.append(await generator.generate(category, index, config))

    (rng or random).shuffle(questions)
    logger.info(
        f"Generated {len(questions)} interview questions: "
        + ", ".join(f"{c.value}={n}" for c, n in counts.items())
    )
    return questions
