"""
Interview session: question navigation, answers and completion.

Answers are keyed by question id. Submitting a question that already has an
answer (after navigating back) replaces it in place. Moving forward past the
last question completes the interview exactly once.
"""

import logging
import math
import time
from enum import Enum as PyEnum
from typing import Any, Awaitable, Callable, Optional, Sequence

from assessments.ports import AnswerEvaluator
from assessments.schemas import (
    Answer,
    InterviewResults,
    JobAssessmentConfig,
    Question,
    QuestionEvaluation,
)
from assessments.scoring import DEFAULT_RECOMMENDATIONS, RecommendationTemplate, aggregate_results
from assessments.timers import CountdownTimer, DelayedCall, invoke_callback
from core.exceptions import PhaseTransitionError
from core.middleware.logging import preview_text

logger = logging.getLogger(__name__)


class InterviewState(str, PyEnum):
    READY = "ready"
    ACTIVE = "active"
    COMPLETED = "completed"


class InterviewSession:
    """
    Drives one AI interview over a fixed question set.

    Args:
        questions: Question set, already shuffled
        config: Job assessment settings
        evaluator: Scores each answer at completion
        on_complete: Receives the aggregated results
        on_autosave: Receives ``(question_id, draft)`` when a draft is auto-saved
        on_timeout_error: Receives the exception when a timed-out question
            could not be submitted (evaluation failed on the last question)
        clock: Seconds clock, ``time.monotonic`` by default
        tick_interval: Countdown tick period; None drives timers manually
        autosave_interval: Delay after the last edit before auto-saving;
            None disables the automatic trigger
        template: Recommendation texts
    """

    def __init__(
        self,
        questions: Sequence[Question],
        config: JobAssessmentConfig,
        evaluator: AnswerEvaluator,
        on_complete: Optional[Callable[[InterviewResults], Awaitable[Any]]] = None,
        on_autosave: Optional[Callable[[str, str], Any]] = None,
        on_timeout_error: Optional[Callable[[Exception], Any]] = None,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: Optional[float] = 1.0,
        autosave_interval: Optional[float] = 30.0,
        template: RecommendationTemplate = DEFAULT_RECOMMENDATIONS,
    ):
        self.questions = list(questions)
        self.config = config
        self.evaluator = evaluator
        self.on_complete = on_complete
        self.on_autosave = on_autosave
        self.on_timeout_error = on_timeout_error
        self.clock = clock
        self.tick_interval = tick_interval
        self.template = template

        self.state = InterviewState.READY
        self.current_index = 0
        self.draft = ""
        self.answers: dict[str, Answer] = {}
        self.results: Optional[InterviewResults] = None

        self.timer: Optional[CountdownTimer] = None
        self.autosave = DelayedCall(autosave_interval, self._autosave, name="interview-autosave")
        self._question_started_at = 0.0
        self._completing = False
        self.cancelled = False

    @property
    def current_question(self) -> Optional[Question]:
        if self.state != InterviewState.ACTIVE or not self.questions:
            return None
        return self.questions[self.current_index]

    @property
    def time_remaining(self) -> int:
        return self.timer.remaining if self.timer else 0

    async def start(self) -> None:
        if self.state != InterviewState.READY:
            raise PhaseTransitionError(f"Interview already {self.state.value}")
        self.state = InterviewState.ACTIVE
        logger.info(f"Interview started with {len(self.questions)} questions")
        if not self.questions:
            await self.complete()
            return
        self._start_question(0)

    def _start_question(self, index: int) -> None:
        if self.timer is not None:
            self.timer.cancel()
        self.autosave.cancel()

        self.current_index = index
        question = self.questions[index]
        existing = self.answers.get(question.id)
        self.draft = existing.answer if existing else ""
        self._question_started_at = self.clock()
        self.timer = CountdownTimer(
            question.time_limit,
            on_expire=self.auto_submit,
            on_error=self.on_timeout_error,
            interval=self.tick_interval,
            name=f"question:{question.id}",
        ).start()

    def _require_active(self) -> Question:
        if self.state != InterviewState.ACTIVE or self._completing:
            raise PhaseTransitionError("Interview is not accepting answers")
        return self.questions[self.current_index]

    def _elapsed(self) -> int:
        return max(0, math.floor(self.clock() - self._question_started_at))

    def _record(self, answer: Answer) -> None:
        replaced = answer.question_id in self.answers
        self.answers[answer.question_id] = answer
        logger.debug(
            f"{'Replaced' if replaced else 'Recorded'} answer for {answer.question_id}: "
            f"{preview_text(answer.answer)!r}"
        )

    def update_draft(self, text: str) -> None:
        self._require_active()
        self.draft = text
        if text:
            self.autosave.reschedule()

    async def _autosave(self) -> None:
        question = self.current_question
        if question is None or not self.draft:
            return
        logger.debug(f"Auto-saving draft for {question.id}: {preview_text(self.draft)!r}")
        await invoke_callback(self.on_autosave, question.id, self.draft)

    async def submit_answer(self, text: Optional[str] = None) -> Optional[InterviewResults]:
        """
        Manual submit of the current question.

        Args:
            text: Answer text; the current draft when omitted

        Returns:
            Final results if this was the last question, else None
        """
        question = self._require_active()
        if text is not None:
            self.draft = text
        self._record(Answer(
            question_id=question.id,
            answer=self.draft,
            time_spent=self._elapsed(),
            auto_submitted=False,
        ))
        return await self._advance()

    async def auto_submit(self) -> Optional[InterviewResults]:
        """Time ran out on the current question: submit the draft as is."""
        question = self._require_active()
        logger.info(f"Question {question.id} timed out, auto-submitting")
        self._record(Answer(
            question_id=question.id,
            answer=self.draft,
            time_spent=question.time_limit,
            auto_submitted=True,
        ))
        return await self._advance()

    def previous_question(self) -> None:
        """Keep the current draft as this question's answer and go back one."""
        question = self._require_active()
        if self.current_index == 0:
            return
        self._record(Answer(
            question_id=question.id,
            answer=self.draft,
            time_spent=self._elapsed(),
            auto_submitted=False,
        ))
        self._start_question(self.current_index - 1)

    async def _advance(self) -> Optional[InterviewResults]:
        if self.current_index < len(self.questions) - 1:
            self._start_question(self.current_index + 1)
            return None
        return await self.complete()

    async def complete(self) -> InterviewResults:
        """Evaluate every answer and aggregate; runs once."""
        if self.results is not None:
            return self.results
        if self.cancelled:
            raise PhaseTransitionError("Interview was cancelled")
        if self._completing:
            raise PhaseTransitionError("Interview completion already in progress")

        self._completing = True
        self._stop_timers()
        questions_by_id = {question.id: question for question in self.questions}
        answers = list(self.answers.values())

        try:
            evaluations: list[QuestionEvaluation] = []
            for answer in answers:
                evaluations.append(
                    await self.evaluator.evaluate(questions_by_id[answer.question_id], answer)
                )
        except Exception:
            self._completing = False
            logger.error("Answer evaluation failed", exc_info=True)
            raise

        self.state = InterviewState.COMPLETED
        self.results = aggregate_results(
            self.questions,
            answers,
            evaluations,
            self.config.minimum_passing_score,
            self.template,
        )
        logger.info(
            f"Interview finished: {self.results.percentage_score}% over "
            f"{self.results.questions_attempted} answers, passed={self.results.passed}"
        )

        if self.on_complete is not None:
            await self.on_complete(self.results)
        return self.results

    def _stop_timers(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
        self.autosave.cancel()

    def cancel(self) -> None:
        """Abandon the interview; in-progress answers are discarded."""
        self._stop_timers()
        self.cancelled = True
        self.state = InterviewState.COMPLETED
