"""
Application Models

Job applications with the ATS score the assessment gate reads and the status
the assessment flow writes back.
"""

import uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    ForeignKey,
    Integer,
    DateTime,
    func,
    JSON,
    Index,
)
from database.engine import Base
from datetime import datetime
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.jobs import Job
    from database.models.assessments import (
        InterviewQuestion,
        InterviewResult,
        TypingTestResult,
    )


# ==================== Application Model ===================== #
class Application(Base):
    """
    A candidate's application to a job.

    ``ai_score`` holds the ATS score until the interview finishes; the flow
    then overwrites it with the interview percentage, or clears it on
    rejection.
    """

    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    job_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("jobs.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Candidate profile snapshot (name, resume text, experience, ...)
    candidate: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)

    status: Mapped[str] = mapped_column(String(50), default="Applied", nullable=False)
    ai_score: Mapped[int | None] = mapped_column(Integer)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    job: Mapped["Job"] = relationship("Job", back_populates="applications")
    typing_test_results: Mapped[list["TypingTestResult"]] = relationship(
        "TypingTestResult", back_populates="application", cascade="all, delete-orphan"
    )
    interview_results: Mapped[list["InterviewResult"]] = relationship(
        "InterviewResult", back_populates="application", cascade="all, delete-orphan"
    )
    interview_questions: Mapped[list["InterviewQuestion"]] = relationship(
        "InterviewQuestion", back_populates="application", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_application_job", "job_id"),
        Index("idx_application_status", "status"),
    )

    def to_record(self) -> dict[str, Any]:
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
