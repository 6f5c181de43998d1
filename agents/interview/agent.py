"""Google GenAI backed interview question writer and answer evaluator."""

import logging
import random
from typing import Any, Dict, Optional

from google.genai import errors as genai_errors

from agents.base import BaseAgent
from agents.common.prompts import STRICTNESS_GUIDANCE
from agents.common.utils import clamp_score, parse_json_response
from agents.interview.heuristic import HeuristicAnswerEvaluator, suggestions_for
from agents.interview.prompts import (
    EVALUATION_PROMPT,
    EVALUATION_SYSTEM_PROMPT,
    QUESTION_PROMPT,
    QUESTION_SYSTEM_PROMPT,
)
from agents.interview.question_bank import QuestionBankGenerator, question_id
from agents.registry import GENAI_EVALUATOR, GENAI_QUESTIONS, register_agent
from assessments.allocator import time_limit_for
from assessments.schemas import (
    Answer,
    JobAssessmentConfig,
    Question,
    QuestionCategory,
    QuestionEvaluation,
)
from assessments.scoring import derive_sub_scores
from core.config import settings
from core.exceptions import EvaluationError
from core.middleware.logging import preview_text

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5


def resolve_model(requested: Optional[str]) -> str:
    """Jobs may name non-Gemini models; those run on the default model."""
    if requested and requested.startswith("gemini"):
        return requested
    return settings.default_ai_model


@register_agent(GENAI_QUESTIONS)
class InterviewQuestionAgent(BaseAgent):
    """Writes interview questions with a Gemini model, falling back to the bank."""

    def __init__(
        self,
        model: Optional[str] = None,
        fallback: Optional[QuestionBankGenerator] = None,
    ):
        super().__init__(
            name=GENAI_QUESTIONS,
            instructions=QUESTION_SYSTEM_PROMPT,
            model=resolve_model(model),
            temperature=0.9,
        )
        self.fallback = fallback or QuestionBankGenerator()

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Ask the model for one question.

        Args:
            input_data: Dictionary with 'category', 'difficulty', 'index',
                       'time_limit', 'job_title' and 'company'

        Returns:
            Parsed response with 'text' and optional 'expected_answer'
        """
        prompt = QUESTION_PROMPT.format(
            index=input_data["index"] + 1,
            job_title=input_data.get("job_title") or "Software Engineer",
            company=input_data.get("company") or "the company",
            category=input_data["category"],
            difficulty=input_data["difficulty"],
            time_limit=input_data["time_limit"],
        )
        data = parse_json_response(await self.run(prompt))
        text = str(data.get("text") or "").strip()
        if not text:
            raise EvaluationError("Model returned an empty question")
        return {"text": text, "expected_answer": data.get("expected_answer")}

    async def generate(
        self,
        category: QuestionCategory,
        index: int,
        config: JobAssessmentConfig,
    ) -> Question:
        time_limit = time_limit_for(category)
        try:
            data = await self.process({
                "category": category.value,
                "difficulty": config.difficulty_level.value,
                "index": index,
                "time_limit": time_limit,
                "job_title": config.job_title,
                "company": config.company,
            })
        except (EvaluationError, genai_errors.APIError) as e:
            logger.warning(f"Question generation failed for {category.value}, using bank: {e}")
            return await self.fallback.generate(category, index, config)

        expected = data.get("expected_answer")
        return Question(
            id=question_id(category, index),
            text=data["text"],
            category=category,
            difficulty=config.difficulty_level,
            time_limit=time_limit,
            expected_answer=str(expected) if expected else None,
        )


@register_agent(GENAI_EVALUATOR)
class InterviewEvaluationAgent(BaseAgent):
    """
    Scores answers with a Gemini model.

    The model supplies ``ai_score``, ``creativity``, feedback and
    suggestions. The remaining sub-scores are derived from ``ai_score`` with
    the same ratios the heuristic uses. Unusable model output falls back to
    the heuristic evaluator.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        strictness: str = "moderate",
        fallback: Optional[HeuristicAnswerEvaluator] = None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(
            name=GENAI_EVALUATOR,
            instructions=EVALUATION_SYSTEM_PROMPT,
            model=resolve_model(model),
            temperature=0.2,
        )
        self.strictness = strictness
        self.fallback = fallback or HeuristicAnswerEvaluator(rng)

    async def process(self, input_data: Dict[str, Any]) -> Dict[str, Any]:
        """Ask the model to grade one answer.

        Args:
            input_data: Dictionary with 'question' and 'answer'

        Returns:
            Dictionary with 'score', 'creativity', 'feedback' and
            'improvement_suggestions'
        """
        question: Question = input_data["question"]
        answer: Answer = input_data["answer"]

        prompt = EVALUATION_PROMPT.format(
            category=question.category.value,
            difficulty=question.difficulty.value,
            question=question.text,
            expected_answer=question.expected_answer or "",
            answer=answer.answer or "(no answer)",
            time_spent=answer.time_spent,
            time_limit=question.time_limit,
            auto_submitted_note=" (auto-submitted when time ran out)" if answer.auto_submitted else "",
            strictness=STRICTNESS_GUIDANCE.get(self.strictness, STRICTNESS_GUIDANCE["moderate"]),
        )
        data = parse_json_response(await self.run(prompt))
        if "score" not in data:
            raise EvaluationError("Model response has no score", {"keys": sorted(data)})

        suggestions = data.get("improvement_suggestions") or []
        if not isinstance(suggestions, list):
            suggestions = [suggestions]

        return {
            "score": clamp_score(data["score"]),
            "creativity": clamp_score(data.get("creativity", data["score"])),
            "feedback": str(data.get("feedback") or ""),
            "improvement_suggestions": [str(s) for s in suggestions][:MAX_SUGGESTIONS],
        }

    async def evaluate(self, question: Question, answer: Answer) -> QuestionEvaluation:
        try:
            data = await self.process({"question": question, "answer": answer})
        except (EvaluationError, genai_errors.APIError) as e:
            logger.warning(
                f"Model evaluation failed for {question.id}, using heuristic: {e}"
            )
            return await self.fallback.evaluate(question, answer)

        ai_score = data["score"]
        logger.debug(
            f"Evaluated {question.id} at {ai_score}: {preview_text(answer.answer)!r}"
        )
        return QuestionEvaluation(
            question_id=answer.question_id,
            ai_score=ai_score,
            **derive_sub_scores(ai_score, answer.time_spent, question.time_limit),
            creativity=data["creativity"],
            feedback=data["feedback"],
            improvement_suggestions=data["improvement_suggestions"] or suggestions_for(question.category),
        )
