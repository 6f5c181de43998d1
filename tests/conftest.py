"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the test environment goes in first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JSON_LOGS", "false")
os.environ["GOOGLE_API_KEY"] = ""

import random
from typing import Any, Optional

import pytest

from assessments.schemas import (
    Answer,
    JobAssessmentConfig,
    Question,
    QuestionCategory,
    QuestionEvaluation,
)
from assessments.scoring import derive_sub_scores
from assessments.store import InMemoryAssessmentStore
from core.exceptions import PersistenceError

REFERENCE_TEXT = "The quick brown fox jumps over the lazy dog."


class FakeClock:
    """Manually advanced seconds clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SequentialGenerator:
    """Deterministic questions: ``<category>_<index>`` with a fixed time limit."""

    def __init__(self, time_limit: int = 100):
        self.time_limit = time_limit
        self.calls: list[tuple[QuestionCategory, int]] = []

    async def generate(self, category, index, config):
        self.calls.append((category, index))
        return Question(
            id=f"{category.value}_{index}",
            text=f"{category.value} question {index}",
            category=category,
            difficulty=config.difficulty_level,
            time_limit=self.time_limit,
        )


class FixedScoreEvaluator:
    """Scores answers from a per-question table, ``default`` otherwise."""

    def __init__(self, scores: Optional[dict[str, float]] = None, default: float = 80):
        self.scores = scores or {}
        self.default = default
        self.evaluated: list[str] = []

    async def evaluate(self, question: Question, answer: Answer) -> QuestionEvaluation:
        self.evaluated.append(answer.question_id)
        ai_score = self.scores.get(answer.question_id, self.default)
        return QuestionEvaluation(
            question_id=answer.question_id,
            ai_score=ai_score,
            **derive_sub_scores(ai_score, answer.time_spent, question.time_limit),
            creativity=75,
            feedback="ok",
        )


class FlakyStore(InMemoryAssessmentStore):
    """In-memory store whose named operations fail a set number of times."""

    def __init__(self, *args: Any, failures: Optional[dict[str, int]] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.failures = dict(failures or {})
        self.calls: list[str] = []

    def _maybe_fail(self, operation: str) -> None:
        self.calls.append(operation)
        if self.failures.get(operation, 0) > 0:
            self.failures[operation] -= 1
            raise PersistenceError(f"{operation} unavailable", operation)

    async def persist_typing_result(self, application_id, job_id, result):
        self._maybe_fail("persist_typing_result")
        return await super().persist_typing_result(application_id, job_id, result)

    async def persist_interview_result(self, application_id, job_id, result):
        self._maybe_fail("persist_interview_result")
        return await super().persist_interview_result(application_id, job_id, result)

    async def update_application_status(self, application_id, status, score):
        self._maybe_fail("update_application_status")
        return await super().update_application_status(application_id, status, score)


def make_job_record(**overrides: Any) -> dict[str, Any]:
    record = {
        "id": "job-1",
        "title": "Backend Engineer",
        "company_name": "Acme",
        "typing_test_enabled": False,
        "minimum_wpm": 40,
        "minimum_accuracy": 90,
        "typing_test_duration": 60,
        "fraud_detection_enabled": True,
        "fraud_sensitivity": "medium",
        "total_interview_questions": 10,
        "question_distribution": {
            "coding": 30,
            "dsa": 25,
            "education": 15,
            "achievements": 15,
            "problem_solving": 15,
        },
        "ai_model": "gemini-2.0-flash",
        "difficulty_level": "medium",
        "minimum_passing_score": 70,
        "evaluation_strictness": "moderate",
        "dynamic_questions_enabled": False,
        "ats_minimum_score": 70,
    }
    record.update(overrides)
    return record


def make_application_record(**overrides: Any) -> dict[str, Any]:
    record = {
        "id": "app-1",
        "job_id": "job-1",
        "ai_score": 85,
        "status": "Applied",
        "candidate": {"name": "Test Candidate"},
    }
    record.update(overrides)
    return record


def make_config(**overrides: Any) -> JobAssessmentConfig:
    values = {"job_id": "job-1"}
    values.update(overrides)
    return JobAssessmentConfig(**values)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def generator():
    return SequentialGenerator()


@pytest.fixture
def evaluator():
    return FixedScoreEvaluator()


@pytest.fixture
def memory_store():
    return InMemoryAssessmentStore(
        jobs={"job-1": make_job_record()},
        applications={"app-1": make_application_record()},
    )
