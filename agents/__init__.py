"""
Agents package for interview question generation and answer evaluation.

Each capability ships a heuristic implementation and a Google GenAI backed
one; all are registered by name in the agent registry.
"""

from agents.registry import (
    registry,
    register_agent,
    resolve_answer_evaluator,
    resolve_question_generator,
)
from agents.base import BaseAgent

# Import all agents to register them
from agents.interview import (
    HeuristicAnswerEvaluator,
    InterviewEvaluationAgent,
    InterviewQuestionAgent,
    QuestionBankGenerator,
)

__all__ = [
    "registry",
    "register_agent",
    "resolve_answer_evaluator",
    "resolve_question_generator",
    "BaseAgent",
    "HeuristicAnswerEvaluator",
    "InterviewEvaluationAgent",
    "InterviewQuestionAgent",
    "QuestionBankGenerator",
]
