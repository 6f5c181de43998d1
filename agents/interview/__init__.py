"""Interview question generators and answer evaluators."""

from agents.interview.question_bank import QuestionBankGenerator
from agents.interview.heuristic import HeuristicAnswerEvaluator
from agents.interview.agent import InterviewEvaluationAgent, InterviewQuestionAgent

__all__ = [
    "QuestionBankGenerator",
    "HeuristicAnswerEvaluator",
    "InterviewQuestionAgent",
    "InterviewEvaluationAgent",
]
