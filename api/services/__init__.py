"""
API Services Layer.

Database-backed results store and the registry of running assessment
sessions used by the API endpoints.
"""

from api.services.assessments import (
    AssessmentSessionRegistry,
    SqlAlchemyAssessmentStore,
    create_assessment_session,
)

__all__ = [
    "AssessmentSessionRegistry",
    "SqlAlchemyAssessmentStore",
    "create_assessment_session",
]
