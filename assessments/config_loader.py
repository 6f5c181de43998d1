"""
Build a typed ``JobAssessmentConfig`` from a persisted job record.

Records are parsed and validated once, at load time. A question
distribution that is missing, not valid JSON, or not a usable category map
is replaced by ``DEFAULT_QUESTION_DISTRIBUTION`` and logged; it never fails
the flow.
"""

import json
import logging
import math
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from assessments.schemas import (
    CATEGORIES,
    DEFAULT_QUESTION_DISTRIBUTION,
    ApplicationRecord,
    JobAssessmentConfig,
    QuestionCategory,
)
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Record column -> config field
JOB_FIELD_MAP = {
    "id": "job_id",
    "title": "job_title",
    "company_name": "company",
    "typing_test_enabled": "typing_test_enabled",
    "minimum_wpm": "minimum_wpm",
    "minimum_accuracy": "minimum_accuracy",
    "typing_test_duration": "typing_test_duration",
    "fraud_detection_enabled": "fraud_detection_enabled",
    "fraud_sensitivity": "fraud_sensitivity",
    "total_interview_questions": "total_interview_questions",
    "ai_model": "ai_model",
    "difficulty_level": "difficulty_level",
    "minimum_passing_score": "minimum_passing_score",
    "evaluation_strictness": "evaluation_strictness",
    "dynamic_questions_enabled": "dynamic_questions_enabled",
    "ats_minimum_score": "ats_minimum_score",
}


def default_distribution() -> dict[QuestionCategory, float]:
    return {category: float(pct) for category, pct in DEFAULT_QUESTION_DISTRIBUTION.items()}


def parse_question_distribution(raw: Any, job_id: Optional[str] = None) -> dict[QuestionCategory, float]:
    """
    Parse a persisted distribution (JSON string or mapping).

    Args:
        raw: Stored value
        job_id: For diagnostics only

    Returns:
        Percentage per category, or the default distribution
    """
    if raw is None or raw == "":
        return default_distribution()

    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        if not isinstance(data, Mapping):
            raise ValueError(f"expected an object, got {type(data).__name__}")

        distribution: dict[QuestionCategory, float] = {}
        for category in CATEGORIES:
            value = float(data[category.value])
            if not math.isfinite(value) or not 0 <= value <= 100:
                raise ValueError(f"percentage out of range for {category.value}: {value}")
            distribution[category] = value
        return distribution

    except (ValueError, TypeError, KeyError) as e:
        # json.JSONDecodeError is a ValueError
        logger.warning(
            f"Malformed question_distribution for job {job_id}, using defaults: {e}"
        )
        return default_distribution()


def load_job_config(record: Optional[Mapping[str, Any]], job_id: str) -> JobAssessmentConfig:
    """
    Validate a job record into a config.

    Args:
        record: Column values of the job, None when the job does not exist
        job_id: Requested job id

    Returns:
        Typed configuration

    Raises:
        ConfigurationError: Missing record or values that fail validation
    """
    if record is None:
        raise ConfigurationError(f"Job {job_id} not found", {"job_id": job_id})

    values: dict[str, Any] = {"job_id": str(record.get("id", job_id))}
    for column, field in JOB_FIELD_MAP.items():
        if column == "id":
            continue
        value = record.get(column)
        if value is not None:
            values[field] = value
    values["question_distribution"] = parse_question_distribution(
        record.get("question_distribution"), job_id
    )

    try:
        return JobAssessmentConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(
            f"Job {job_id} has invalid assessment settings",
            {"job_id": job_id, "errors": e.errors(include_url=False)},
        ) from e


def load_application(record: Optional[Mapping[str, Any]], application_id: str) -> ApplicationRecord:
    """
    Build the application view the flow needs.

    Raises:
        ConfigurationError: When the application does not exist
    """
    if record is None:
        raise ConfigurationError(
            f"Application {application_id} not found", {"application_id": application_id}
        )

    return ApplicationRecord(
        application_id=str(record.get("id", application_id)),
        job_id=record.get("job_id"),
        ats_score=record.get("ai_score") or 0,
        candidate_profile=dict(record.get("candidate") or {}),
    )
