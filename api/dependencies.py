"""FastAPI dependencies for dependency injection."""

from fastapi import Depends, HTTPException, Path, status

from api.services.assessments import AssessmentSessionRegistry, SqlAlchemyAssessmentStore
from assessments.coordinator import PhaseCoordinator
from assessments.ports import AssessmentStore


_sessions = AssessmentSessionRegistry()
_store = SqlAlchemyAssessmentStore()


def get_session_registry() -> AssessmentSessionRegistry:
    """Process-wide registry of running assessment sessions."""
    return _sessions


def get_assessment_store() -> AssessmentStore:
    return _store


async def get_coordinator(
    session_id: str = Path(..., description="Assessment session ID"),
    sessions: AssessmentSessionRegistry = Depends(get_session_registry),
) -> PhaseCoordinator:
    """Resolve the running coordinator of a session."""
    coordinator = sessions.get(session_id)

    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Assessment session not found",
        )

    return coordinator
