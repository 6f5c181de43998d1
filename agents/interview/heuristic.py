"""
Length and time based answer scoring.

Used when no model is configured, and as the fallback when model output
cannot be used.
"""

import random
from typing import Optional

from agents.registry import HEURISTIC_EVALUATOR, register_agent
from assessments.schemas import Answer, Question, QuestionCategory, QuestionEvaluation
from assessments.scoring import derive_sub_scores

MIN_BASE_SCORE = 30
MAX_BASE_SCORE = 90
CHARS_PER_POINT = 10
QUICK_ANSWER_RATIO = 0.5
QUICK_ANSWER_BONUS = 10

EXCELLENT_FEEDBACK = (
    "Excellent response! You demonstrated strong understanding and provided a "
    "comprehensive answer with good technical depth."
)
GOOD_FEEDBACK = (
    "Good response with room for improvement. Consider providing more specific "
    "examples and diving deeper into technical details."
)
BASIC_FEEDBACK = (
    "Your response shows basic understanding but lacks detail. Try to elaborate "
    "more on your thought process and provide concrete examples."
)

IMPROVEMENT_SUGGESTIONS: dict[QuestionCategory, list[str]] = {
    QuestionCategory.CODING: [
        "Practice explaining your code step-by-step",
        "Consider edge cases and error handling",
        "Discuss time and space complexity",
    ],
    QuestionCategory.DSA: [
        "Review fundamental data structures",
        "Practice algorithm analysis",
        "Study common optimization techniques",
    ],
    QuestionCategory.EDUCATION: [
        "Connect academic concepts to practical applications",
        "Highlight relevant coursework",
        "Discuss continuous learning initiatives",
    ],
    QuestionCategory.ACHIEVEMENTS: [
        "Use the STAR method (Situation, Task, Action, Result)",
        "Quantify your impact with specific metrics",
        "Highlight leadership and collaboration skills",
    ],
    QuestionCategory.PROBLEM_SOLVING: [
        "Break down complex problems systematically",
        "Consider multiple solution approaches",
        "Discuss trade-offs and decision criteria",
    ],
}


def heuristic_score(answer: Answer, question: Question) -> float:
    base = min(MAX_BASE_SCORE, max(MIN_BASE_SCORE, len(answer.answer) / CHARS_PER_POINT))
    bonus = QUICK_ANSWER_BONUS if answer.time_spent < question.time_limit * QUICK_ANSWER_RATIO else 0
    return min(100, base + bonus)


def feedback_for(score: float) -> str:
    if score >= 80:
        return EXCELLENT_FEEDBACK
    if score >= 60:
        return GOOD_FEEDBACK
    return BASIC_FEEDBACK


def suggestions_for(category: QuestionCategory) -> list[str]:
    return list(
        IMPROVEMENT_SUGGESTIONS.get(category, IMPROVEMENT_SUGGESTIONS[QuestionCategory.PROBLEM_SOLVING])
    )


@register_agent(HEURISTIC_EVALUATOR)
class HeuristicAnswerEvaluator:
    """
    Scores an answer from its length and how quickly it was given.

    ``creativity`` is drawn uniformly from 60-100.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    async def evaluate(self, question: Question, answer: Answer) -> QuestionEvaluation:
        ai_score = heuristic_score(answer, question)
        return QuestionEvaluation(
            question_id=answer.question_id,
            ai_score=ai_score,
            **derive_sub_scores(ai_score, answer.time_spent, question.time_limit),
            creativity=self.rng.random() * 40 + 60,
            feedback=feedback_for(ai_score),
            improvement_suggestions=suggestions_for(question.category),
        )
