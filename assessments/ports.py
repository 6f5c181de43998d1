"""
Capabilities the assessment flow depends on.

Implementations live elsewhere: heuristic and model-backed generators and
evaluators in ``agents.interview``, stores in ``assessments.store`` and
``api.services.assessments``.
"""

from typing import Optional, Protocol, runtime_checkable

from assessments.schemas import (
    Answer,
    ApplicationRecord,
    ApplicationStatus,
    InterviewResults,
    JobAssessmentConfig,
    Question,
    QuestionCategory,
    QuestionEvaluation,
    TypingTestResult,
)


@runtime_checkable
class QuestionGenerator(Protocol):
    """Produces interview questions for an allocated slot."""

    async def generate(
        self,
        category: QuestionCategory,
        index: int,
        config: JobAssessmentConfig,
    ) -> Question:
        ...


@runtime_checkable
class AnswerEvaluator(Protocol):
    """Scores one answer. ``ai_score`` and every sub-score stay within 0-100."""

    async def evaluate(self, question: Question, answer: Answer) -> QuestionEvaluation:
        ...


@runtime_checkable
class AssessmentStore(Protocol):
    """
    Results store contract.

    Fetch calls raise ``ConfigurationError`` for missing records; every other
    failure surfaces as ``PersistenceError``.
    """

    async def fetch_job_config(self, job_id: str) -> JobAssessmentConfig:
        ...

    async def fetch_application(self, application_id: str) -> ApplicationRecord:
        ...

    async def persist_typing_result(
        self, application_id: str, job_id: str, result: TypingTestResult
    ) -> str:
        ...

    async def persist_interview_result(
        self, application_id: str, job_id: str, result: InterviewResults
    ) -> str:
        ...

    async def update_application_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        score: Optional[int],
    ) -> None:
        ...
