"""
Jobs Module

Job postings with the assessment settings an applicant's test flow runs on.
"""

import uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    DateTime,
    func,
    Text,
    JSON,
)
from database.engine import Base
from datetime import datetime
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from database.models.applications import Application


# ==================== Job Model ===================== #
class Job(Base):
    """
    Job posting. The typing-test and interview columns are read once per
    assessment session into a ``JobAssessmentConfig``.
    """

    __tablename__ = "jobs"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )

    # Basic info
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    company_name: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)

    # Typing test
    typing_test_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    minimum_wpm: Mapped[int] = mapped_column(Integer, default=40, nullable=False)
    minimum_accuracy: Mapped[int] = mapped_column(Integer, default=90, nullable=False)
    typing_test_duration: Mapped[int] = mapped_column(
        Integer, default=60, nullable=False
    )  # seconds
    fraud_detection_enabled: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    fraud_sensitivity: Mapped[str] = mapped_column(
        String(20), default="medium", nullable=False
    )

    # AI interview
    total_interview_questions: Mapped[int] = mapped_column(
        Integer, default=10, nullable=False
    )
    # Percentages per category; older rows hold a JSON string
    question_distribution: Mapped[Any] = mapped_column(JSON, nullable=True)
    ai_model: Mapped[str] = mapped_column(
        String(100), default="gemini-2.0-flash", nullable=False
    )
    difficulty_level: Mapped[str] = mapped_column(
        String(20), default="medium", nullable=False
    )
    minimum_passing_score: Mapped[int] = mapped_column(
        Integer, default=70, nullable=False
    )
    evaluation_strictness: Mapped[str] = mapped_column(
        String(20), default="moderate", nullable=False
    )
    dynamic_questions_enabled: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # ATS gate
    ats_minimum_score: Mapped[int] = mapped_column(Integer, default=70, nullable=False)

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
    applications: Mapped[list["Application"]] = relationship(
        "Application", back_populates="job", cascade="all, delete-orphan"
    )

    def to_record(self) -> dict[str, Any]:
        """Column values keyed by column name."""
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}
