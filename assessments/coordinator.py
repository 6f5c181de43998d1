"""
Phase coordinator: sequences ATS check, typing test and AI interview.

The coordinator is the only writer of phase status. It loads the job
configuration and application once, gates on the ATS score, runs the enabled
phases in order, persists each phase's result through the store, and decides
the overall outcome.

Persistence failures never lose results. The failing operation is kept as a
list of remaining steps; ``retry_persistence()`` resumes from the step that
failed and ``bypass_persistence()`` drops the remaining steps and finalizes
the phase anyway.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Optional

from assessments.allocator import build_question_set
from assessments.interview import InterviewSession
from assessments.paragraphs import pick_paragraph
from assessments.ports import AnswerEvaluator, AssessmentStore, QuestionGenerator
from assessments.schemas import (
    ApplicationRecord,
    ApplicationStatus,
    FlowSnapshot,
    InterviewResults,
    JobAssessmentConfig,
    OverallOutcome,
    PhaseId,
    PhaseRecord,
    PhaseStatus,
    TypingStats,
    TypingTestResult,
)
from assessments.scoring import DEFAULT_RECOMMENDATIONS, RecommendationTemplate
from assessments.timers import DelayedCall, invoke_callback
from assessments.typing import TypingTestSession
from core.config import settings
from core.exceptions import ConfigurationError, PersistenceError, PhaseTransitionError

logger = logging.getLogger(__name__)

OVERVIEW = "overview"

PHASE_DETAILS: dict[PhaseId, tuple[str, str]] = {
    PhaseId.ATS_CHECK: (
        "ATS Score Check",
        "Resume screening against the job requirements",
    ),
    PhaseId.TYPING_TEST: (
        "Typing Speed Test",
        "Timed typing test measuring speed and accuracy",
    ),
    PhaseId.AI_INTERVIEW: (
        "AI Technical Interview",
        "Questions across coding, DSA, education, achievements and problem solving",
    ),
}

PersistStep = tuple[str, Callable[[], Awaitable[Any]]]


class PhaseCoordinator:
    """
    Runs the assessment flow for one application.

    Args:
        store: Results store
        question_generator: Interview question source
        answer_evaluator: Interview answer scorer
        on_complete: Receives the ``OverallOutcome`` once the flow ends
        on_cancel: Called when the candidate exits the flow
        clock: Seconds clock handed to the phase sessions
        tick_interval: Countdown tick period; None drives timers manually
        autostart_delay: Seconds between a passed typing test and the
            interview starting; None leaves the start to ``start_interview()``
        autosave_interval: Interview draft auto-save delay
        paragraph_picker: ``(category, rng) -> str`` for the typing reference
        rng: Random source for paragraph choice and question shuffling
        template: Interview recommendation texts
        generator_factory: Builds the question generator from the loaded
            job config when none was given
        evaluator_factory: Same for the answer evaluator
    """

    def __init__(
        self,
        store: AssessmentStore,
        question_generator: Optional[QuestionGenerator] = None,
        answer_evaluator: Optional[AnswerEvaluator] = None,
        on_complete: Optional[Callable[[OverallOutcome], Any]] = None,
        on_cancel: Optional[Callable[[], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: Optional[float] = 1.0,
        autostart_delay: Optional[float] = settings.interview_autostart_delay_seconds,
        autosave_interval: Optional[float] = settings.autosave_interval_seconds,
        paragraph_picker: Callable[[str, Optional[random.Random]], str] = pick_paragraph,
        rng: Optional[random.Random] = None,
        template: RecommendationTemplate = DEFAULT_RECOMMENDATIONS,
        generator_factory: Optional[Callable[[JobAssessmentConfig], QuestionGenerator]] = None,
        evaluator_factory: Optional[Callable[[JobAssessmentConfig], AnswerEvaluator]] = None,
    ):
        self.store = store
        self.question_generator = question_generator
        self.answer_evaluator = answer_evaluator
        self.on_complete = on_complete
        self.on_cancel = on_cancel
        self.clock = clock
        self.tick_interval = tick_interval
        self.autostart_delay = autostart_delay
        self.autosave_interval = autosave_interval
        self.paragraph_picker = paragraph_picker
        self.rng = rng
        self.template = template
        self.generator_factory = generator_factory
        self.evaluator_factory = evaluator_factory

        self.job_id: Optional[str] = None
        self.application_id: Optional[str] = None
        self.config: Optional[JobAssessmentConfig] = None
        self.application: Optional[ApplicationRecord] = None
        self.phases: dict[PhaseId, PhaseRecord] = {}
        self.current_view = OVERVIEW

        self.rejection_reason: Optional[str] = None
        self.error_message: Optional[str] = None
        self.outcome: Optional[OverallOutcome] = None
        self.exited = False

        self.typing_session: Optional[TypingTestSession] = None
        self.interview_session: Optional[InterviewSession] = None
        self.typing_result: Optional[TypingTestResult] = None
        self.interview_result: Optional[InterviewResults] = None

        self._pending_steps: list[PersistStep] = []
        self._pending_finalize: Optional[Callable[[], Awaitable[None]]] = None
        self._autostart: Optional[DelayedCall] = None
        self._outcome_future: Optional[asyncio.Future] = None

    # ==================== Initialization ===================== #

    async def start(self, job_id: str, application_id: str) -> Optional[bool]:
        """
        Load configuration, evaluate the ATS gate and queue the remaining phases.

        Args:
            job_id: Job being applied to
            application_id: Candidate's application

        Returns:
            False when the ATS gate rejects the candidate, None while the
            flow is still in progress

        Raises:
            ConfigurationError: Job or application could not be loaded
            PhaseTransitionError: The coordinator was already started
        """
        if self.config is not None:
            raise PhaseTransitionError("Assessment flow already started")

        self._outcome_future = asyncio.get_running_loop().create_future()
        self.job_id = job_id
        self.application_id = application_id

        try:
            config = await self.store.fetch_job_config(job_id)
            application = await self.store.fetch_application(application_id)
        except ConfigurationError:
            logger.error(
                f"Failed to load assessment configuration for job {job_id}",
                extra=self._log_extra(),
            )
            raise
        except PersistenceError as e:
            logger.error(
                f"Store unavailable while loading job {job_id}",
                exc_info=True,
                extra=self._log_extra(),
            )
            raise ConfigurationError(
                "Failed to load test configuration",
                {"job_id": job_id, "application_id": application_id},
            ) from e

        if self.question_generator is None and self.generator_factory is not None:
            self.question_generator = self.generator_factory(config)
        if self.answer_evaluator is None and self.evaluator_factory is not None:
            self.answer_evaluator = self.evaluator_factory(config)
        if self.question_generator is None or self.answer_evaluator is None:
            raise ConfigurationError("Interview agents are not configured", {"job_id": job_id})

        self.config = config
        self.application = application

        ats_passed = application.ats_score >= config.ats_minimum_score
        self.phases = {
            PhaseId.ATS_CHECK: self._phase(
                PhaseId.ATS_CHECK,
                status=PhaseStatus.COMPLETED if ats_passed else PhaseStatus.FAILED,
                results={
                    "score": application.ats_score,
                    "required": config.ats_minimum_score,
                },
            ),
            PhaseId.TYPING_TEST: self._phase(
                PhaseId.TYPING_TEST,
                status=PhaseStatus.PENDING if config.typing_test_enabled else PhaseStatus.SKIPPED,
                required=config.typing_test_enabled,
            ),
            PhaseId.AI_INTERVIEW: self._phase(PhaseId.AI_INTERVIEW),
        }
        logger.info(
            f"Assessment initialized: ATS {application.ats_score} "
            f"(minimum {config.ats_minimum_score}), typing test "
            f"{'enabled' if config.typing_test_enabled else 'disabled'}",
            extra=self._log_extra(),
        )

        if not ats_passed:
            self.rejection_reason = (
                f"Minimum ATS score of {config.ats_minimum_score} required. "
                f"Current score: {application.ats_score:g}"
            )
            logger.info("ATS gate failed, flow ends", extra=self._log_extra(PhaseId.ATS_CHECK))
            await self._finish(False)
            return False
        return None

    @staticmethod
    def _phase(
        phase_id: PhaseId,
        status: PhaseStatus = PhaseStatus.PENDING,
        required: bool = True,
        results: Optional[dict[str, Any]] = None,
    ) -> PhaseRecord:
        name, description = PHASE_DETAILS[phase_id]
        return PhaseRecord(
            id=phase_id,
            name=name,
            description=description,
            status=status,
            required=required,
            results=results,
        )

    def _log_extra(self, phase: Optional[PhaseId] = None) -> dict[str, Any]:
        extra = {"application_id": self.application_id, "job_id": self.job_id}
        if phase is not None:
            extra["phase"] = phase.value
        return extra

    # ==================== State queries ===================== #

    @property
    def started(self) -> bool:
        return self.config is not None

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    @property
    def awaiting_persistence(self) -> bool:
        return self._pending_finalize is not None

    def active_phase(self) -> Optional[PhaseId]:
        for phase_id, phase in self.phases.items():
            if phase.status == PhaseStatus.ACTIVE:
                return phase_id
        return None

    def snapshot(self) -> FlowSnapshot:
        return FlowSnapshot(
            job_id=self.job_id,
            application_id=self.application_id,
            current_view=self.current_view,
            phases=[phase.model_copy() for phase in self.phases.values()],
            rejection_reason=self.rejection_reason,
            error_message=self.error_message,
            awaiting_persistence=self.awaiting_persistence,
            outcome=self.outcome,
        )

    async def wait_for_outcome(self) -> OverallOutcome:
        """Block until the flow produces its overall outcome."""
        if self._outcome_future is None:
            raise PhaseTransitionError("Assessment flow not started")
        return await asyncio.shield(self._outcome_future)

    def _set_status(
        self,
        phase_id: PhaseId,
        status: PhaseStatus,
        results: Optional[dict[str, Any]] = None,
    ) -> None:
        phase = self.phases[phase_id]
        previous = phase.status
        phase.status = status
        if results is not None:
            phase.results = results
        logger.info(
            f"Phase {phase_id.value}: {previous.value} -> {status.value}",
            extra=self._log_extra(phase_id),
        )

    def _require_ready_for(self, phase_id: PhaseId) -> None:
        if not self.started:
            raise PhaseTransitionError("Assessment flow not started")
        if self.finished or self.exited:
            raise PhaseTransitionError("Assessment flow has ended")
        if self.awaiting_persistence:
            raise PhaseTransitionError("Previous results have not been saved yet")
        active = self.active_phase()
        if active is not None:
            raise PhaseTransitionError(f"Phase {active.value} is still active")
        if self.phases[phase_id].status != PhaseStatus.PENDING:
            raise PhaseTransitionError(
                f"Phase {phase_id.value} is {self.phases[phase_id].status.value}"
            )
        if self.phases[PhaseId.ATS_CHECK].status != PhaseStatus.COMPLETED:
            raise PhaseTransitionError("ATS check not passed")

    async def start_next_phase(self) -> PhaseId:
        """Start the first pending phase: the typing test if enabled, else the interview."""
        for phase_id in (PhaseId.TYPING_TEST, PhaseId.AI_INTERVIEW):
            if self.phases.get(phase_id) and self.phases[phase_id].status == PhaseStatus.PENDING:
                if phase_id == PhaseId.TYPING_TEST:
                    self.start_typing_test()
                else:
                    await self.start_interview()
                return phase_id
        raise PhaseTransitionError("No pending phase to start")

    # ==================== Typing test ===================== #

    def start_typing_test(self) -> TypingTestSession:
        """Activate the typing test with a freshly picked reference paragraph."""
        self._require_ready_for(PhaseId.TYPING_TEST)

        paragraph = self.paragraph_picker(settings.typing_paragraph_category, self.rng)
        self.typing_session = TypingTestSession(
            self.config,
            paragraph,
            on_complete=self._on_typing_complete,
            clock=self.clock,
            tick_interval=self.tick_interval,
        )
        self._set_status(PhaseId.TYPING_TEST, PhaseStatus.ACTIVE)
        self.current_view = PhaseId.TYPING_TEST.value
        self.typing_session.start()
        return self.typing_session

    def _active_typing_session(self) -> TypingTestSession:
        if self.active_phase() != PhaseId.TYPING_TEST or self.typing_session is None:
            raise PhaseTransitionError("Typing test is not active")
        return self.typing_session

    async def typing_input(self, text: str) -> TypingStats:
        return await self._active_typing_session().handle_input(text)

    def typing_focus_lost(self) -> None:
        self._active_typing_session().register_focus_loss()

    async def submit_typing_test(self) -> TypingTestResult:
        return await self._active_typing_session().submit()

    async def _on_typing_complete(self, result: TypingTestResult) -> None:
        self.typing_result = result
        steps: list[PersistStep] = [
            (
                "save typing test results",
                lambda: self.store.persist_typing_result(
                    self.application_id, self.job_id, result
                ),
            ),
        ]
        if not result.passed:
            steps.append((
                "update application status",
                lambda: self.store.update_application_status(
                    self.application_id, ApplicationStatus.REJECTED, None
                ),
            ))

        async def finalize() -> None:
            self._set_status(
                PhaseId.TYPING_TEST,
                PhaseStatus.COMPLETED if result.passed else PhaseStatus.FAILED,
                results=result.model_dump(mode="json", exclude={"keystroke_data"}),
            )
            self.current_view = OVERVIEW
            if result.passed:
                self._schedule_interview()
            else:
                await self._finish(False)

        await self._commit(steps, finalize)

    # ==================== AI interview ===================== #

    def _schedule_interview(self) -> None:
        if self.autostart_delay is None:
            return
        self._autostart = DelayedCall(
            self.autostart_delay,
            self._autostart_interview,
            name="interview-autostart",
        ).start()

    async def _autostart_interview(self) -> None:
        try:
            await self.start_interview()
        except Exception:
            logger.error(
                "Interview auto-start failed",
                exc_info=True,
                extra=self._log_extra(PhaseId.AI_INTERVIEW),
            )
            self.error_message = "Failed to generate interview questions. Please try again."

    async def start_interview(self) -> InterviewSession:
        """
        Generate the question set and activate the interview.

        Raises:
            PhaseTransitionError: The typing test (when enabled) has not passed,
                or another phase is active
        """
        self._require_ready_for(PhaseId.AI_INTERVIEW)
        if self.phases[PhaseId.TYPING_TEST].status not in (
            PhaseStatus.COMPLETED,
            PhaseStatus.SKIPPED,
        ):
            raise PhaseTransitionError("Typing test must be passed before the interview")
        if self._autostart is not None:
            self._autostart.cancel()
            self._autostart = None

        questions = await build_question_set(self.config, self.question_generator, self.rng)
        # Re-check after the await; a concurrent start may have won
        self._require_ready_for(PhaseId.AI_INTERVIEW)

        self.interview_session = InterviewSession(
            questions,
            self.config,
            self.answer_evaluator,
            on_complete=self._on_interview_complete,
            on_timeout_error=self._on_interview_timeout_error,
            clock=self.clock,
            tick_interval=self.tick_interval,
            autosave_interval=self.autosave_interval,
            template=self.template,
        )
        self.error_message = None
        self._set_status(PhaseId.AI_INTERVIEW, PhaseStatus.ACTIVE)
        self.current_view = PhaseId.AI_INTERVIEW.value
        await self.interview_session.start()
        return self.interview_session

    def _on_interview_timeout_error(self, error: Exception) -> None:
        # The answer stays recorded; submitting again re-runs the evaluation
        self.error_message = "Failed to evaluate interview answers. Please submit again."

    def active_interview_session(self) -> InterviewSession:
        if self.active_phase() != PhaseId.AI_INTERVIEW or self.interview_session is None:
            raise PhaseTransitionError("Interview is not active")
        return self.interview_session

    async def _on_interview_complete(self, results: InterviewResults) -> None:
        self.interview_result = results
        if results.passed:
            status, score = ApplicationStatus.UNDER_REVIEW, results.percentage_score
        else:
            status, score = ApplicationStatus.REJECTED, None

        steps: list[PersistStep] = [
            (
                "save interview results",
                lambda: self.store.persist_interview_result(
                    self.application_id, self.job_id, results
                ),
            ),
            (
                "update application status",
                lambda: self.store.update_application_status(
                    self.application_id, status, score
                ),
            ),
        ]

        async def finalize() -> None:
            self._set_status(
                PhaseId.AI_INTERVIEW,
                PhaseStatus.COMPLETED if results.passed else PhaseStatus.FAILED,
                results=results.model_dump(
                    mode="json", exclude={"questions", "answers", "evaluations"}
                ),
            )
            self.current_view = OVERVIEW
            await self._finish(results.passed)

        await self._commit(steps, finalize)

    # ==================== Persistence ===================== #

    async def _commit(
        self,
        steps: list[PersistStep],
        finalize: Callable[[], Awaitable[None]],
    ) -> bool:
        self._pending_steps = list(steps)
        self._pending_finalize = finalize
        return await self._drain_pending()

    async def _drain_pending(self) -> bool:
        while self._pending_steps:
            operation, step = self._pending_steps[0]
            try:
                await step()
            except PersistenceError as e:
                logger.error(
                    f"Failed to {operation}: {e.message}",
                    exc_info=True,
                    extra=self._log_extra(self.active_phase()),
                )
                self.error_message = f"Failed to {operation}. Please try again."
                return False
            self._pending_steps.pop(0)

        finalize = self._pending_finalize
        self._pending_finalize = None
        self.error_message = None
        if finalize is not None:
            await finalize()
        return True

    async def retry_persistence(self) -> bool:
        """
        Re-run the save that failed, continuing from the failed step.

        Returns:
            True when everything is saved and the phase has been finalized
        """
        if not self.awaiting_persistence:
            raise PhaseTransitionError("Nothing is waiting to be saved")
        logger.info(
            f"Retrying {len(self._pending_steps)} pending save step(s)",
            extra=self._log_extra(self.active_phase()),
        )
        return await self._drain_pending()

    async def bypass_persistence(self) -> None:
        """Continue without saving; the in-memory results still drive the flow."""
        if not self.awaiting_persistence:
            raise PhaseTransitionError("Nothing is waiting to be saved")
        skipped = [operation for operation, _ in self._pending_steps]
        logger.warning(
            f"Continuing without saving: {', '.join(skipped)}",
            extra=self._log_extra(self.active_phase()),
        )
        self._pending_steps = []
        await self._drain_pending()

    # ==================== Completion & cancellation ===================== #

    async def _finish(self, passed: bool) -> None:
        self.outcome = OverallOutcome(
            application_id=self.application_id,
            job_id=self.job_id,
            typing_test_results=self.typing_result,
            interview_results=self.interview_result,
            overall_passed=passed,
        )
        logger.info(
            f"Assessment finished, overall passed={passed}",
            extra=self._log_extra(),
        )
        if self._outcome_future is not None and not self._outcome_future.done():
            self._outcome_future.set_result(self.outcome)
        await invoke_callback(self.on_complete, self.outcome)

    def cancel_phase(self) -> None:
        """
        Abandon the active phase and go back to the overview.

        The phase returns to ``pending`` and nothing from it is persisted.
        """
        active = self.active_phase()
        if active is None:
            self.current_view = OVERVIEW
            return
        if self.awaiting_persistence:
            raise PhaseTransitionError("Results are waiting to be saved")

        if active == PhaseId.TYPING_TEST and self.typing_session is not None:
            self.typing_session.cancel()
            self.typing_session = None
        elif active == PhaseId.AI_INTERVIEW and self.interview_session is not None:
            self.interview_session.cancel()
            self.interview_session = None

        self._set_status(active, PhaseStatus.PENDING)
        self.phases[active].results = None
        self.current_view = OVERVIEW

    async def exit(self) -> None:
        """Leave the flow; unsaved work is discarded and ``on_cancel`` fires."""
        if self._autostart is not None:
            self._autostart.cancel()
            self._autostart = None
        if self.typing_session is not None:
            self.typing_session.cancel()
        if self.interview_session is not None:
            self.interview_session.cancel()
        self._pending_steps = []
        self._pending_finalize = None
        self.current_view = OVERVIEW
        self.exited = True

        if self._outcome_future is not None and not self._outcome_future.done():
            self._outcome_future.cancel()
        logger.info("Candidate exited the assessment", extra=self._log_extra())
        await invoke_callback(self.on_cancel)
