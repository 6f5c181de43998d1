"""In-process ``AssessmentStore`` for local runs and tests."""

import logging
import uuid
from typing import Any, Optional

from assessments.config_loader import load_application, load_job_config
from assessments.schemas import (
    ApplicationRecord,
    ApplicationStatus,
    InterviewResults,
    JobAssessmentConfig,
    TypingTestResult,
)

logger = logging.getLogger(__name__)


class InMemoryAssessmentStore:
    """
    Keeps job and application records as plain dicts, the same shape the
    database rows have, and stores results as serialized dicts so that what
    comes back out has gone through the same round trip as a real store.
    """

    def __init__(
        self,
        jobs: Optional[dict[str, dict[str, Any]]] = None,
        applications: Optional[dict[str, dict[str, Any]]] = None,
    ):
        self.jobs: dict[str, dict[str, Any]] = dict(jobs or {})
        self.applications: dict[str, dict[str, Any]] = dict(applications or {})
        self.typing_results: dict[str, dict[str, Any]] = {}
        self.interview_results: dict[str, dict[str, Any]] = {}
        self.status_updates: list[tuple[str, ApplicationStatus, Optional[int]]] = []

    async def fetch_job_config(self, job_id: str) -> JobAssessmentConfig:
        return load_job_config(self.jobs.get(job_id), job_id)

    async def fetch_application(self, application_id: str) -> ApplicationRecord:
        return load_application(self.applications.get(application_id), application_id)

    async def persist_typing_result(
        self, application_id: str, job_id: str, result: TypingTestResult
    ) -> str:
        result_id = str(uuid.uuid4())
        self.typing_results[result_id] = {
            "application_id": application_id,
            "job_id": job_id,
            **result.model_dump(mode="json"),
        }
        return result_id

    async def persist_interview_result(
        self, application_id: str, job_id: str, result: InterviewResults
    ) -> str:
        result_id = str(uuid.uuid4())
        self.interview_results[result_id] = {
            "application_id": application_id,
            "job_id": job_id,
            **result.model_dump(mode="json"),
        }
        return result_id

    async def update_application_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        score: Optional[int],
    ) -> None:
        application = self.applications.setdefault(application_id, {"id": application_id})
        application["status"] = status.value
        application["ai_score"] = score
        self.status_updates.append((application_id, status, score))
        logger.info(f"Application {application_id} -> {status.value} (score={score})")

    def latest_typing_result(self, application_id: str) -> Optional[TypingTestResult]:
        for row in reversed(list(self.typing_results.values())):
            if row["application_id"] == application_id:
                return TypingTestResult.model_validate(row)
        return None

    def latest_interview_result(self, application_id: str) -> Optional[InterviewResults]:
        for row in reversed(list(self.interview_results.values())):
            if row["application_id"] == application_id:
                return InterviewResults.model_validate(row)
        return None
