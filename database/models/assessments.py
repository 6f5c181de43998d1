"""
Assessment Result Models

Typing test results, interview results, and one row per interview question
holding the question, the candidate's answer and its evaluation.
"""

import uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    Integer,
    DateTime,
    func,
    Text,
    JSON,
    Float,
    Index,
)
from database.engine import Base
from datetime import datetime
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application


def _uuid() -> str:
    return str(uuid.uuid4())


# ==================== Typing Test ===================== #
class TypingTestResult(Base):
    """Final typing test outcome with the audit trail it was computed from."""

    __tablename__ = "typing_test_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    application_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False
    )
    job_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # Metrics
    wpm: Mapped[int] = mapped_column(Integer, nullable=False)
    accuracy: Mapped[int] = mapped_column(Integer, nullable=False)
    characters_typed: Mapped[int] = mapped_column(Integer, nullable=False)
    errors_made: Mapped[int] = mapped_column(Integer, nullable=False)
    corrections_made: Mapped[int] = mapped_column(Integer, nullable=False)
    time_spent: Mapped[int] = mapped_column(Integer, nullable=False)  # seconds
    test_duration: Mapped[int] = mapped_column(Integer, nullable=False)  # seconds

    # Test setup
    paragraph_used: Mapped[str] = mapped_column(Text, nullable=False)
    minimum_wpm_required: Mapped[int] = mapped_column(Integer, nullable=False)
    minimum_accuracy_required: Mapped[int] = mapped_column(Integer, nullable=False)

    # Fraud detection
    keystroke_data: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, default=list, nullable=False
    )
    fraud_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    fraud_indicators: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    browser_focus_lost_count: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )

    passed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    auto_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="typing_test_results"
    )

    __table_args__ = (Index("idx_typing_result_application", "application_id"),)


# ==================== Interview ===================== #
class InterviewResult(Base):
    """Aggregated interview outcome."""

    __tablename__ = "interview_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    application_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False
    )
    job_id: Mapped[str] = mapped_column(String(36), nullable=False)

    total_score: Mapped[int] = mapped_column(Integer, nullable=False)
    percentage_score: Mapped[int] = mapped_column(Integer, nullable=False)
    questions_attempted: Mapped[int] = mapped_column(Integer, nullable=False)
    questions_completed: Mapped[int] = mapped_column(Integer, nullable=False)

    # Category breakdown
    coding_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    dsa_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    education_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    achievements_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    problem_solving_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Time analysis
    total_time_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    average_time_per_question: Mapped[int] = mapped_column(Integer, nullable=False)
    questions_auto_submitted: Mapped[int] = mapped_column(Integer, nullable=False)

    passed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    recommendation: Mapped[str] = mapped_column(Text, nullable=False)
    next_steps: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="interview_results"
    )

    __table_args__ = (Index("idx_interview_result_application", "application_id"),)


class InterviewQuestion(Base):
    """One asked question, with the answer and evaluation when there is one."""

    __tablename__ = "interview_questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    application_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("applications.id", ondelete="CASCADE"), nullable=False
    )
    job_id: Mapped[str] = mapped_column(String(36), nullable=False)

    # Question
    question_key: Mapped[str] = mapped_column(String(100), nullable=False)
    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    question_category: Mapped[str] = mapped_column(String(50), nullable=False)
    difficulty_level: Mapped[str] = mapped_column(String(20), nullable=False)
    expected_answer: Mapped[str | None] = mapped_column(Text)
    time_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    max_score: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    question_order: Mapped[int] = mapped_column(Integer, nullable=False)

    # Answer
    candidate_answer: Mapped[str | None] = mapped_column(Text)
    time_spent: Mapped[int | None] = mapped_column(Integer)
    auto_submitted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    answered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Evaluation
    ai_score: Mapped[float | None] = mapped_column(Float)
    technical_accuracy_score: Mapped[float | None] = mapped_column(Float)
    problem_solving_score: Mapped[float | None] = mapped_column(Float)
    communication_score: Mapped[float | None] = mapped_column(Float)
    time_management_score: Mapped[float | None] = mapped_column(Float)
    creativity_score: Mapped[float | None] = mapped_column(Float)
    ai_feedback: Mapped[str | None] = mapped_column(Text)
    improvement_suggestions: Mapped[list[str] | None] = mapped_column(JSON)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    application: Mapped["Application"] = relationship(
        "Application", back_populates="interview_questions"
    )

    __table_args__ = (
        Index("idx_interview_question_application", "application_id"),
        Index("idx_interview_question_order", "application_id", "question_order"),
    )
