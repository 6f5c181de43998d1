"""
Candidate assessment endpoints.

Drives one assessment session per application: ATS gate, typing test and AI
interview. Every mutating call answers with the session view so the client
can re-render without a second request.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Path, status
from pydantic import BaseModel, Field

from api.dependencies import (
    get_assessment_store,
    get_coordinator,
    get_session_registry,
)
from api.services.assessments import AssessmentSessionRegistry, create_assessment_session
from assessments.coordinator import PhaseCoordinator
from assessments.ports import AssessmentStore
from core.utils.formatting import format_countdown

router = APIRouter(prefix="/assessments", tags=["assessments"])


class CreateSessionRequest(BaseModel):
    """Request model for starting an assessment."""
    job_id: str = Field(..., min_length=1, description="Job being applied to")
    application_id: str = Field(..., min_length=1, description="Candidate's application")


class TypingInputRequest(BaseModel):
    """Full current contents of the typing area."""
    text: str = Field(..., max_length=10_000)


class DraftRequest(BaseModel):
    """Current answer draft."""
    text: str = Field(..., max_length=50_000)


class SubmitAnswerRequest(BaseModel):
    """Answer to submit; the saved draft is used when omitted."""
    text: Optional[str] = Field(None, max_length=50_000)


def _typing_view(coordinator: PhaseCoordinator) -> Optional[dict[str, Any]]:
    session = coordinator.typing_session
    if session is None:
        return None
    stats = session.live_stats()
    return {
        "state": session.state.value,
        "reference_text": session.reference_text,
        "time_remaining": session.time_remaining,
        "countdown": format_countdown(session.time_remaining),
        "focus_lost_count": session.focus_lost_count,
        "stats": stats.model_dump(),
        "result": session.result.model_dump(mode="json", exclude={"keystroke_data"})
        if session.result
        else None,
    }


def _interview_view(coordinator: PhaseCoordinator) -> Optional[dict[str, Any]]:
    session = coordinator.interview_session
    if session is None:
        return None
    question = session.current_question
    return {
        "state": session.state.value,
        "question_number": session.current_index + 1 if question else None,
        "total_questions": len(session.questions),
        "answered": len(session.answers),
        "question": question.model_dump(mode="json", exclude={"expected_answer"})
        if question
        else None,
        "draft": session.draft,
        "time_remaining": session.time_remaining,
        "countdown": format_countdown(session.time_remaining),
    }


def _session_view(session_id: str, coordinator: PhaseCoordinator) -> dict[str, Any]:
    return {
        "session_id": session_id,
        **coordinator.snapshot().model_dump(mode="json"),
        "typing_test": _typing_view(coordinator),
        "interview": _interview_view(coordinator),
    }


@router.post(
    "/sessions",
    status_code=status.HTTP_201_CREATED,
    summary="Start Assessment",
    description="Load the job's assessment settings, evaluate the ATS gate and open a session.",
)
async def create_session(
    request: CreateSessionRequest,
    sessions: AssessmentSessionRegistry = Depends(get_session_registry),
    store: AssessmentStore = Depends(get_assessment_store),
):
    """Create an assessment session for an application."""
    session_id, coordinator = await create_assessment_session(
        sessions, store, request.job_id, request.application_id
    )
    return _session_view(session_id, coordinator)


@router.get(
    "/sessions/{session_id}",
    summary="Get Assessment Session",
)
async def get_session(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    """Current phases, active phase state and outcome."""
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/next", summary="Start Next Phase")
async def start_next_phase(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    """Start whichever phase is next in line."""
    await coordinator.start_next_phase()
    return _session_view(session_id, coordinator)


# ==================== Typing test ===================== #

@router.post("/sessions/{session_id}/typing/start", summary="Start Typing Test")
async def start_typing_test(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    coordinator.start_typing_test()
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/typing/input", summary="Typing Input")
async def typing_input(
    request: TypingInputRequest,
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    """Report the full typed text after each change."""
    await coordinator.typing_input(request.text)
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/typing/focus-loss", summary="Typing Focus Lost")
async def typing_focus_loss(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    coordinator.typing_focus_lost()
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/typing/submit", summary="Submit Typing Test")
async def submit_typing_test(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    await coordinator.submit_typing_test()
    return _session_view(session_id, coordinator)


# ==================== AI interview ===================== #

@router.post("/sessions/{session_id}/interview/start", summary="Start Interview")
async def start_interview(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    await coordinator.start_interview()
    return _session_view(session_id, coordinator)


@router.put("/sessions/{session_id}/interview/draft", summary="Save Answer Draft")
async def save_draft(
    request: DraftRequest,
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    coordinator.active_interview_session().update_draft(request.text)
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/interview/submit", summary="Submit Answer")
async def submit_answer(
    request: SubmitAnswerRequest,
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    """Submit the current question and move to the next one (or finish)."""
    await coordinator.active_interview_session().submit_answer(request.text)
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/interview/previous", summary="Previous Question")
async def previous_question(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    coordinator.active_interview_session().previous_question()
    return _session_view(session_id, coordinator)


# ==================== Flow control ===================== #

@router.post("/sessions/{session_id}/cancel", summary="Cancel Active Phase")
async def cancel_phase(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    """Abandon the active phase without saving and return to the overview."""
    coordinator.cancel_phase()
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/persistence/retry", summary="Retry Save")
async def retry_persistence(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    await coordinator.retry_persistence()
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/persistence/bypass", summary="Continue Without Saving")
async def bypass_persistence(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
):
    await coordinator.bypass_persistence()
    return _session_view(session_id, coordinator)


@router.post("/sessions/{session_id}/exit", summary="Exit Assessment")
async def exit_session(
    session_id: str = Path(..., description="Assessment session ID"),
    coordinator: PhaseCoordinator = Depends(get_coordinator),
    sessions: AssessmentSessionRegistry = Depends(get_session_registry),
):
    """Leave the assessment; unsaved work is discarded and the session closed."""
    await coordinator.exit()
    sessions.remove(session_id)
    return {"session_id": session_id, "status": "exited"}
