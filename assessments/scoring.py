"""
Interview scoring: sub-score derivation and result aggregation.

``percentage_score`` is the mean of per-question ``ai_score`` values, which are
already on a 0-100 scale. It is not normalized against ``max_score``; every
question carries the same ``max_score`` of 100.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from assessments.schemas import (
    CATEGORIES,
    Answer,
    InterviewResults,
    Question,
    QuestionCategory,
    QuestionEvaluation,
    TimeAnalysis,
)
from core.utils.formatting import round_half_up

logger = logging.getLogger(__name__)

TECHNICAL_ACCURACY_RATIO = 0.9
PROBLEM_SOLVING_RATIO = 0.8
COMMUNICATION_RATIO = 0.85
ON_TIME_SCORE = 90
OVERTIME_SCORE = 60


def derive_sub_scores(ai_score: float, time_spent: int, time_limit: int) -> dict[str, float]:
    """
    Sub-scores that follow from the overall score and the answer time.

    Returns:
        ``technical_accuracy``, ``problem_solving``, ``communication`` and
        ``time_management``; ``creativity`` is left to the evaluator.
    """
    return {
        "technical_accuracy": ai_score * TECHNICAL_ACCURACY_RATIO,
        "problem_solving": ai_score * PROBLEM_SOLVING_RATIO,
        "communication": ai_score * COMMUNICATION_RATIO,
        "time_management": ON_TIME_SCORE if time_spent < time_limit else OVERTIME_SCORE,
    }


@dataclass(frozen=True)
class RecommendationTemplate:
    """Fixed recommendation texts chosen by the verdict."""

    passed_recommendation: str = (
        "Candidate demonstrates strong technical capabilities and problem-solving skills. "
        "Recommended for next interview round."
    )
    failed_recommendation: str = (
        "Candidate shows potential but may need additional preparation. "
        "Consider providing feedback and scheduling a follow-up assessment."
    )
    passed_next_steps: str = "Schedule technical panel interview with senior team members."
    failed_next_steps: str = (
        "Provide detailed feedback and offer study resources for improvement areas."
    )

    def render(self, passed: bool) -> tuple[str, str]:
        if passed:
            return self.passed_recommendation, self.passed_next_steps
        return self.failed_recommendation, self.failed_next_steps


DEFAULT_RECOMMENDATIONS = RecommendationTemplate()


def _category_breakdown(
    evaluations: Iterable[QuestionEvaluation],
    questions_by_id: dict[str, Question],
) -> dict[QuestionCategory, int]:
    scores: dict[QuestionCategory, list[float]] = {category: [] for category in CATEGORIES}
    for evaluation in evaluations:
        question = questions_by_id.get(evaluation.question_id)
        if question is None:
            logger.warning(f"Evaluation for unknown question {evaluation.question_id}")
            continue
        scores[question.category].append(evaluation.ai_score)

    return {
        category: round_half_up(sum(values) / len(values)) if values else 0
        for category, values in scores.items()
    }


def aggregate_results(
    questions: Sequence[Question],
    answers: Sequence[Answer],
    evaluations: Sequence[QuestionEvaluation],
    minimum_passing_score: int,
    template: RecommendationTemplate = DEFAULT_RECOMMENDATIONS,
) -> InterviewResults:
    """
    Fold answers and their evaluations into the interview result.

    Args:
        questions: The interview's question set
        answers: One answer per submitted question, blank ones included
        evaluations: One evaluation per answer
        minimum_passing_score: Inclusive pass mark for ``percentage_score``
        template: Recommendation texts

    Returns:
        Interview results; all counts are zero when nothing was answered
    """
    attempted = len(answers)
    total_score = sum(evaluation.ai_score for evaluation in evaluations)
    percentage_score = round_half_up(total_score / attempted) if attempted else 0

    total_time = sum(answer.time_spent for answer in answers)
    time_analysis = TimeAnalysis(
        total_time_spent=total_time,
        average_time_per_question=round_half_up(total_time / attempted) if attempted else 0,
        questions_auto_submitted=sum(1 for answer in answers if answer.auto_submitted),
    )

    passed = percentage_score >= minimum_passing_score
    recommendation, next_steps = template.render(passed)

    return InterviewResults(
        total_score=round_half_up(total_score),
        percentage_score=percentage_score,
        questions_attempted=attempted,
        questions_completed=sum(1 for answer in answers if answer.answer.strip()),
        category_breakdown=_category_breakdown(
            evaluations, {question.id: question for question in questions}
        ),
        time_analysis=time_analysis,
        passed=passed,
        recommendation=recommendation,
        next_steps=next_steps,
        evaluations=list(evaluations),
        questions=list(questions),
        answers=list(answers),
    )
