"""Assessment service: SQL results store and the in-process session registry."""

from typing import Any, Callable, Dict, Optional
import logging
import time
import uuid

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from agents import resolve_answer_evaluator, resolve_question_generator
from assessments.config_loader import load_application, load_job_config
from assessments.coordinator import PhaseCoordinator
from assessments.ports import AssessmentStore
from assessments.schemas import (
    ApplicationRecord,
    ApplicationStatus,
    InterviewResults,
    JobAssessmentConfig,
    QuestionCategory,
    TypingTestResult,
)
from core.config import settings
from core.exceptions import PersistenceError
from database.engine import AsyncSessionLocal
from database.models.applications import Application
from database.models.assessments import (
    InterviewQuestion,
    InterviewResult,
    TypingTestResult as TypingTestResultRow,
)
from database.models.jobs import Job

logger = logging.getLogger(__name__)


class SqlAlchemyAssessmentStore:
    """``AssessmentStore`` on the async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal):
        self.session_factory = session_factory

    async def fetch_job_config(self, job_id: str) -> JobAssessmentConfig:
        try:
            async with self.session_factory() as session:
                job = await session.get(Job, job_id)
                record = job.to_record() if job else None
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load job", "fetch_job_config", {"job_id": job_id}
            ) from e
        return load_job_config(record, job_id)

    async def fetch_application(self, application_id: str) -> ApplicationRecord:
        try:
            async with self.session_factory() as session:
                application = await session.get(Application, application_id)
                record = application.to_record() if application else None
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load application",
                "fetch_application",
                {"application_id": application_id},
            ) from e
        return load_application(record, application_id)

    async def persist_typing_result(
        self, application_id: str, job_id: str, result: TypingTestResult
    ) -> str:
        row = TypingTestResultRow(
            application_id=application_id,
            job_id=job_id,
            wpm=result.wpm,
            accuracy=result.accuracy,
            characters_typed=result.characters_typed,
            errors_made=result.errors_made,
            corrections_made=result.corrections_made,
            time_spent=result.time_spent,
            test_duration=result.test_duration,
            paragraph_used=result.paragraph_used,
            minimum_wpm_required=result.minimum_wpm_required,
            minimum_accuracy_required=result.minimum_accuracy_required,
            keystroke_data=[event.model_dump(mode="json") for event in result.keystroke_data],
            fraud_score=result.fraud_score,
            fraud_indicators=list(result.fraud_indicators),
            browser_focus_lost_count=result.focus_lost_count,
            passed=result.passed,
            auto_submitted=result.auto_submitted,
        )
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                result_id = row.id
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to save typing test results",
                "persist_typing_result",
                {"application_id": application_id},
            ) from e

        logger.info(f"Saved typing test result {result_id} for application {application_id}")
        return result_id

    async def persist_interview_result(
        self, application_id: str, job_id: str, result: InterviewResults
    ) -> str:
        answers = {answer.question_id: answer for answer in result.answers}
        evaluations = {evaluation.question_id: evaluation for evaluation in result.evaluations}

        question_rows = []
        for order, question in enumerate(result.questions):
            answer = answers.get(question.id)
            evaluation = evaluations.get(question.id)
            question_rows.append(InterviewQuestion(
                application_id=application_id,
                job_id=job_id,
                question_key=question.id,
                question_text=question.text,
                question_category=question.category.value,
                difficulty_level=question.difficulty.value,
                expected_answer=question.expected_answer,
                time_limit=question.time_limit,
                max_score=question.max_score,
                question_order=order,
                candidate_answer=answer.answer if answer else None,
                time_spent=answer.time_spent if answer else None,
                auto_submitted=answer.auto_submitted if answer else False,
                answered_at=answer.timestamp if answer else None,
                ai_score=evaluation.ai_score if evaluation else None,
                technical_accuracy_score=evaluation.technical_accuracy if evaluation else None,
                problem_solving_score=evaluation.problem_solving if evaluation else None,
                communication_score=evaluation.communication if evaluation else None,
                time_management_score=evaluation.time_management if evaluation else None,
                creativity_score=evaluation.creativity if evaluation else None,
                ai_feedback=evaluation.feedback if evaluation else None,
                improvement_suggestions=(
                    list(evaluation.improvement_suggestions) if evaluation else None
                ),
            ))

        breakdown = result.category_breakdown
        result_row = InterviewResult(
            application_id=application_id,
            job_id=job_id,
            total_score=result.total_score,
            percentage_score=result.percentage_score,
            questions_attempted=result.questions_attempted,
            questions_completed=result.questions_completed,
            coding_score=breakdown.get(QuestionCategory.CODING, 0),
            dsa_score=breakdown.get(QuestionCategory.DSA, 0),
            education_score=breakdown.get(QuestionCategory.EDUCATION, 0),
            achievements_score=breakdown.get(QuestionCategory.ACHIEVEMENTS, 0),
            problem_solving_score=breakdown.get(QuestionCategory.PROBLEM_SOLVING, 0),
            total_time_spent=result.time_analysis.total_time_spent,
            average_time_per_question=result.time_analysis.average_time_per_question,
            questions_auto_submitted=result.time_analysis.questions_auto_submitted,
            passed=result.passed,
            recommendation=result.recommendation,
            next_steps=result.next_steps,
        )

        # Question rows and the result row are written in one transaction
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    session.add_all(question_rows)
                    session.add(result_row)
                result_id = result_row.id
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to save interview results",
                "persist_interview_result",
                {"application_id": application_id},
            ) from e

        logger.info(
            f"Saved interview result {result_id} with {len(question_rows)} questions "
            f"for application {application_id}"
        )
        return result_id

    async def update_application_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        score: Optional[int],
    ) -> None:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    update(Application)
                    .where(Application.id == application_id)
                    .values(status=status.value, ai_score=score)
                )
                await session.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to update application status",
                "update_application_status",
                {"application_id": application_id},
            ) from e

        if result.rowcount == 0:
            raise PersistenceError(
                f"Application {application_id} not found",
                "update_application_status",
                {"application_id": application_id},
            )
        logger.info(f"Application {application_id} -> {status.value} (score={score})")

    async def latest_interview_questions(self, application_id: str) -> list[Dict[str, Any]]:
        """Stored question rows of an application, in the order they were asked."""
        try:
            async with self.session_factory() as session:
                rows = await session.execute(
                    select(InterviewQuestion)
                    .where(InterviewQuestion.application_id == application_id)
                    .order_by(InterviewQuestion.question_order)
                )
                return [
                    {column.name: getattr(row, column.name) for column in row.__table__.columns}
                    for row in rows.scalars()
                ]
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Failed to load interview questions",
                "latest_interview_questions",
                {"application_id": application_id},
            ) from e


class AssessmentSessionRegistry:
    """
    In-process map of session id to running coordinator.

    A finished session stays readable for ``finished_ttl`` seconds so the
    client can fetch its final view; it is evicted on the next registry
    access after that.
    """

    def __init__(
        self,
        finished_ttl: float = settings.finished_session_ttl_seconds,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.finished_ttl = finished_ttl
        self.clock = clock
        self._sessions: Dict[str, PhaseCoordinator] = {}
        self._finished_at: Dict[str, float] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def add(self, coordinator: PhaseCoordinator, session_id: Optional[str] = None) -> str:
        self.prune()
        session_id = session_id or uuid.uuid4().hex
        self._sessions[session_id] = coordinator
        if getattr(coordinator, "finished", False):
            self.mark_finished(session_id)
        return session_id

    def get(self, session_id: str) -> Optional[PhaseCoordinator]:
        self.prune()
        return self._sessions.get(session_id)

    def remove(self, session_id: str) -> Optional[PhaseCoordinator]:
        self._finished_at.pop(session_id, None)
        return self._sessions.pop(session_id, None)

    def mark_finished(self, session_id: str) -> None:
        """Start the eviction countdown of a session whose flow has ended."""
        if session_id in self._sessions:
            self._finished_at.setdefault(session_id, self.clock())

    def prune(self) -> int:
        """Evict finished sessions older than ``finished_ttl``."""
        now = self.clock()
        expired = [
            session_id
            for session_id, finished_at in self._finished_at.items()
            if now - finished_at >= self.finished_ttl
        ]
        for session_id in expired:
            self.remove(session_id)
        if expired:
            logger.info(f"Evicted {len(expired)} finished assessment session(s)")
        return len(expired)


async def create_assessment_session(
    sessions: AssessmentSessionRegistry,
    store: AssessmentStore,
    job_id: str,
    application_id: str,
) -> tuple[str, PhaseCoordinator]:
    """Build a coordinator for the application, start it and register it.

    Raises:
        ConfigurationError: Job or application could not be loaded
    """
    session_id = uuid.uuid4().hex
    coordinator = PhaseCoordinator(
        store,
        on_complete=lambda outcome: sessions.mark_finished(session_id),
        generator_factory=resolve_question_generator,
        evaluator_factory=resolve_answer_evaluator,
        autostart_delay=settings.interview_autostart_delay_seconds,
        autosave_interval=settings.autosave_interval_seconds,
    )
    await coordinator.start(job_id, application_id)
    sessions.add(coordinator, session_id)
    logger.info(
        f"Assessment session {session_id} created",
        extra={"session_id": session_id, "application_id": application_id, "job_id": job_id},
    )
    return session_id, coordinator
