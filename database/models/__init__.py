from database.models.jobs import Job
from database.models.applications import Application
from database.models.assessments import (
    InterviewQuestion,
    InterviewResult,
    TypingTestResult,
)

__all__ = [
    "Job",
    "Application",
    "InterviewQuestion",
    "InterviewResult",
    "TypingTestResult",
]
