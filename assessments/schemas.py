"""Pydantic models for the assessment flow."""

import math
from datetime import datetime, timezone
from enum import Enum as PyEnum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


# ==================== Enums ===================== #
class QuestionCategory(str, PyEnum):
    """Fixed interview question categories."""

    CODING = "coding"
    DSA = "dsa"
    EDUCATION = "education"
    ACHIEVEMENTS = "achievements"
    PROBLEM_SOLVING = "problem_solving"


class Difficulty(str, PyEnum):
    """Interview difficulty level."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class FraudSensitivity(str, PyEnum):
    """Typing-test fraud detection sensitivity."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PhaseId(str, PyEnum):
    """Assessment phases, in the order they run."""

    ATS_CHECK = "ats-check"
    TYPING_TEST = "typing-test"
    AI_INTERVIEW = "ai-interview"


class PhaseStatus(str, PyEnum):
    """Lifecycle status of a phase."""

    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ApplicationStatus(str, PyEnum):
    """Application statuses written by the assessment flow."""

    UNDER_REVIEW = "Under Review"
    REJECTED = "Rejected"


CATEGORIES: tuple[QuestionCategory, ...] = tuple(QuestionCategory)

DEFAULT_QUESTION_DISTRIBUTION: dict[QuestionCategory, int] = {
    QuestionCategory.CODING: 30,
    QuestionCategory.DSA: 25,
    QuestionCategory.EDUCATION: 15,
    QuestionCategory.ACHIEVEMENTS: 15,
    QuestionCategory.PROBLEM_SOLVING: 15,
}


# ==================== Configuration ===================== #
class JobAssessmentConfig(BaseModel):
    """Assessment settings of one job, fixed for the whole session."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    job_title: str = ""
    company: str = "Company"

    # Typing test
    typing_test_enabled: bool = False
    minimum_wpm: int = Field(default=40, ge=0)
    minimum_accuracy: int = Field(default=90, ge=0, le=100)
    typing_test_duration: int = Field(default=60, gt=0, description="Seconds")
    fraud_detection_enabled: bool = True
    fraud_sensitivity: FraudSensitivity = FraudSensitivity.MEDIUM

    # AI interview
    total_interview_questions: int = Field(default=10, ge=0)
    question_distribution: dict[QuestionCategory, float] = Field(
        default_factory=lambda: dict(DEFAULT_QUESTION_DISTRIBUTION)
    )
    ai_model: str = "gemini-2.0-flash"
    difficulty_level: Difficulty = Difficulty.MEDIUM
    minimum_passing_score: int = Field(default=70, ge=0, le=100)
    evaluation_strictness: str = "moderate"
    dynamic_questions_enabled: bool = False

    # ATS gate
    ats_minimum_score: int = Field(default=70, ge=0, le=100)

    @field_validator("question_distribution")
    @classmethod
    def validate_distribution(cls, v: dict[QuestionCategory, float]) -> dict[QuestionCategory, float]:
        """Every category present, each percentage a finite value in 0-100."""
        missing = [c.value for c in CATEGORIES if c not in v]
        if missing:
            raise ValueError(f"Distribution missing categories: {', '.join(missing)}")
        if any(not math.isfinite(pct) or not 0 <= pct <= 100 for pct in v.values()):
            raise ValueError("Distribution percentages must be between 0 and 100")
        return v


class ApplicationRecord(BaseModel):
    """The slice of an application the flow needs."""

    model_config = ConfigDict(frozen=True)

    application_id: str
    job_id: Optional[str] = None
    ats_score: float = 0
    candidate_profile: dict[str, Any] = Field(default_factory=dict)


# ==================== Typing test ===================== #
class KeystrokeEvent(BaseModel):
    """One input-change event during a typing test."""

    model_config = ConfigDict(frozen=True)

    key: str
    timestamp: float = Field(description="Milliseconds")
    time_between_keystrokes: float = Field(ge=0, description="Milliseconds")
    is_correction: bool = False


class TypingStats(BaseModel):
    """Live statistics for an in-progress typing test."""

    wpm: int = Field(ge=0)
    accuracy: int = Field(ge=0, le=100)
    characters_typed: int = Field(ge=0)
    errors_count: int = Field(ge=0)
    corrections_count: int = Field(ge=0)


class TypingTestResult(BaseModel):
    """Final typing test outcome."""

    model_config = ConfigDict(frozen=True)

    wpm: int = Field(ge=0)
    accuracy: int = Field(ge=0, le=100)
    characters_typed: int = Field(ge=0)
    errors_made: int = Field(ge=0)
    corrections_made: int = Field(ge=0)
    time_spent: int = Field(ge=0, description="Seconds")
    passed: bool
    fraud_score: float = Field(ge=0.0, le=1.0)
    fraud_indicators: list[str] = Field(default_factory=list)

    # Audit fields
    auto_submitted: bool = False
    test_duration: int = 0
    paragraph_used: str = ""
    minimum_wpm_required: int = 0
    minimum_accuracy_required: int = 0
    focus_lost_count: int = 0
    keystroke_data: list[KeystrokeEvent] = Field(default_factory=list)


# ==================== Interview ===================== #
class Question(BaseModel):
    """A single interview question."""

    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    category: QuestionCategory
    difficulty: Difficulty
    time_limit: int = Field(gt=0, description="Seconds")
    max_score: int = 100
    expected_answer: Optional[str] = None


class Answer(BaseModel):
    """A candidate's answer to one question."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    answer: str = ""
    time_spent: int = Field(ge=0, description="Seconds")
    auto_submitted: bool = False
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QuestionEvaluation(BaseModel):
    """Scores and feedback for one answer."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    ai_score: float = Field(ge=0, le=100)
    technical_accuracy: float = Field(ge=0, le=100)
    problem_solving: float = Field(ge=0, le=100)
    communication: float = Field(ge=0, le=100)
    time_management: float = Field(ge=0, le=100)
    creativity: float = Field(ge=0, le=100)
    feedback: str = ""
    improvement_suggestions: list[str] = Field(default_factory=list)


class TimeAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_time_spent: int = Field(ge=0)
    average_time_per_question: int = Field(ge=0)
    questions_auto_submitted: int = Field(ge=0)


class InterviewResults(BaseModel):
    """Aggregated interview outcome."""

    model_config = ConfigDict(frozen=True)

    total_score: int = Field(ge=0)
    percentage_score: int = Field(ge=0, le=100)
    questions_attempted: int = Field(ge=0)
    questions_completed: int = Field(ge=0)
    category_breakdown: dict[QuestionCategory, int]
    time_analysis: TimeAnalysis
    passed: bool
    recommendation: str
    next_steps: str
    evaluations: list[QuestionEvaluation] = Field(default_factory=list)
    questions: list[Question] = Field(default_factory=list)
    answers: list[Answer] = Field(default_factory=list)


# ==================== Phases ===================== #
class PhaseRecord(BaseModel):
    """Status of one assessment phase as seen by the presentation layer."""

    id: PhaseId
    name: str
    description: str = ""
    status: PhaseStatus = PhaseStatus.PENDING
    required: bool = True
    results: Optional[dict[str, Any]] = None


class OverallOutcome(BaseModel):
    """Terminal result of the whole flow."""

    model_config = ConfigDict(frozen=True)

    application_id: str
    job_id: str
    typing_test_results: Optional[TypingTestResult] = None
    interview_results: Optional[InterviewResults] = None
    overall_passed: bool


class FlowSnapshot(BaseModel):
    """Read-only view of coordinator state."""

    job_id: Optional[str] = None
    application_id: Optional[str] = None
    current_view: str
    phases: list[PhaseRecord] = Field(default_factory=list)
    rejection_reason: Optional[str] = None
    error_message: Optional[str] = None
    awaiting_persistence: bool = False
    outcome: Optional[OverallOutcome] = None
