"""
Typing test metrics: speed, accuracy, and fraud heuristics.

The pure functions at the top compute everything from plain inputs; the
``TypingTestSession`` below owns the live state of one test (input, keystroke
log, focus losses, countdown) and produces the final ``TypingTestResult``
exactly once.
"""

import logging
import time
from enum import Enum as PyEnum
from typing import Any, Awaitable, Callable, Optional, Sequence

from assessments.schemas import (
    JobAssessmentConfig,
    KeystrokeEvent,
    TypingStats,
    TypingTestResult,
)
from assessments.timers import CountdownTimer
from core.exceptions import PhaseTransitionError
from core.utils.formatting import round_half_up, round_to

logger = logging.getLogger(__name__)

CHARS_PER_WORD = 5

# Fraud rules
FAST_TYPING_THRESHOLD_MS = 50
FAST_TYPING_WEIGHT = 0.3
FOCUS_LOSS_LIMIT = 2
FOCUS_LOSS_WEIGHT = 0.2
ALERTS_WEIGHT = 0.2
RAPID_BURST_INTERVAL_MS = 10
RAPID_BURST_MAX_CHARS = 5
FRAUD_FAIL_THRESHOLD = 0.7

FAST_TYPING_INDICATOR = "Unusually fast typing detected"
FOCUS_LOSS_INDICATOR = "Multiple focus losses during test"
RAPID_BURST_ALERT = "Suspicious rapid typing detected"


def calculate_stats(
    user_input: str,
    reference: str,
    elapsed_minutes: float,
    corrections: int = 0,
) -> TypingStats:
    """
    Compare typed text with the reference and derive live statistics.

    Characters are compared position by position up to the shorter of the two
    strings. Words are counted as five correct characters.

    Args:
        user_input: What the candidate has typed so far
        reference: Paragraph being copied
        elapsed_minutes: Time since the test started
        corrections: Number of correction keystrokes so far

    Returns:
        Live statistics; accuracy is 100 before anything is typed
    """
    correct_chars = 0
    errors = 0
    for typed, expected in zip(user_input, reference):
        if typed == expected:
            correct_chars += 1
        else:
            errors += 1

    wpm = round_half_up((correct_chars / CHARS_PER_WORD) / elapsed_minutes) if elapsed_minutes > 0 else 0
    accuracy = round_half_up(correct_chars / len(user_input) * 100) if user_input else 100

    return TypingStats(
        wpm=wpm,
        accuracy=accuracy,
        characters_typed=len(user_input),
        errors_count=errors,
        corrections_count=corrections,
    )


def average_keystroke_interval(events: Sequence[KeystrokeEvent]) -> Optional[float]:
    """
    Mean gap between keystrokes in milliseconds.

    The first event has no predecessor and is excluded. Returns None when
    there are fewer than two events.
    """
    if len(events) < 2:
        return None
    gaps = [event.time_between_keystrokes for event in events[1:]]
    return sum(gaps) / len(gaps)


def calculate_fraud_score(
    average_interval_ms: Optional[float],
    focus_lost_count: int,
    alerts: Sequence[str] = (),
) -> tuple[float, list[str]]:
    """
    Additive fraud score from the triggered rules.

    Args:
        average_interval_ms: Mean inter-keystroke gap, None if unknown
        focus_lost_count: Times the candidate left the test window
        alerts: Messages raised while typing, appended verbatim

    Returns:
        Score rounded to two decimals (at most 1.0) and the ordered indicators
    """
    score = 0.0
    indicators: list[str] = []

    if average_interval_ms is not None and average_interval_ms < FAST_TYPING_THRESHOLD_MS:
        score += FAST_TYPING_WEIGHT
        indicators.append(FAST_TYPING_INDICATOR)

    if focus_lost_count > FOCUS_LOSS_LIMIT:
        score += FOCUS_LOSS_WEIGHT
        indicators.append(FOCUS_LOSS_INDICATOR)

    if alerts:
        score += ALERTS_WEIGHT
        indicators.extend(alerts)

    return min(1.0, round_to(score, 2)), indicators


def is_passing(wpm: int, accuracy: int, fraud_score: float, config: JobAssessmentConfig) -> bool:
    """Typing verdict: both minimums met and fraud below the fail threshold."""
    return (
        wpm >= config.minimum_wpm
        and accuracy >= config.minimum_accuracy
        and fraud_score < FRAUD_FAIL_THRESHOLD
    )


class TypingState(str, PyEnum):
    READY = "ready"
    ACTIVE = "active"
    COMPLETED = "completed"


class TypingTestSession:
    """
    One typing test from first keystroke to final result.

    The test starts on ``start()`` or on the first input. It finalizes when
    the countdown expires, when the input reaches the reference length, or on
    ``submit()``. Finalization happens once; later input is ignored.

    Args:
        config: Job assessment settings
        reference_text: Paragraph to copy (never modified)
        on_complete: Receives the result once finalized
        clock: Seconds clock, ``time.monotonic`` by default
        tick_interval: Countdown tick period; None drives it manually
    """

    def __init__(
        self,
        config: JobAssessmentConfig,
        reference_text: str,
        on_complete: Optional[Callable[[TypingTestResult], Awaitable[Any]]] = None,
        clock: Callable[[], float] = time.monotonic,
        tick_interval: Optional[float] = 1.0,
    ):
        self.config = config
        self.reference_text = reference_text
        self.on_complete = on_complete
        self.clock = clock

        self.state = TypingState.READY
        self.user_input = ""
        self.keystrokes: list[KeystrokeEvent] = []
        self.fraud_alerts: list[str] = []
        self.focus_lost_count = 0
        self.result: Optional[TypingTestResult] = None
        self.cancelled = False

        self._start_time: Optional[float] = None
        self._last_keystroke_ms: Optional[float] = None
        self.timer = CountdownTimer(
            config.typing_test_duration,
            on_expire=self._on_timeout,
            interval=tick_interval,
            name="typing-test",
        )

    @property
    def completed(self) -> bool:
        return self.state == TypingState.COMPLETED

    @property
    def time_remaining(self) -> int:
        return self.timer.remaining

    def start(self) -> None:
        if self.state != TypingState.READY:
            return
        self.state = TypingState.ACTIVE
        self._start_time = self.clock()
        self.timer.start()
        logger.info(
            f"Typing test started ({self.config.typing_test_duration}s, "
            f"{len(self.reference_text)} chars)"
        )

    def elapsed_seconds(self) -> float:
        if self._start_time is None:
            return 0.0
        return max(0.0, self.clock() - self._start_time)

    def corrections(self) -> int:
        return sum(1 for event in self.keystrokes if event.is_correction)

    def live_stats(self) -> TypingStats:
        return calculate_stats(
            self.user_input,
            self.reference_text,
            self.elapsed_seconds() / 60,
            self.corrections(),
        )

    async def handle_input(self, new_input: str) -> TypingStats:
        """
        Process one input-change event.

        Returns:
            Live statistics after the change (final ones if this completed the test)
        """
        if self.completed:
            return self.live_stats()
        if self.state == TypingState.READY:
            self.start()

        if self.config.fraud_detection_enabled:
            self._record_keystroke(new_input)

        self.user_input = new_input

        if len(new_input) >= len(self.reference_text):
            await self.finalize(auto_submitted=False)

        return self.live_stats()

    def _record_keystroke(self, new_input: str) -> None:
        now_ms = self.clock() * 1000
        gap = now_ms - self._last_keystroke_ms if self._last_keystroke_ms is not None else 0.0
        inserted = len(new_input) - len(self.user_input)

        if gap < RAPID_BURST_INTERVAL_MS and inserted > RAPID_BURST_MAX_CHARS:
            self.fraud_alerts.append(RAPID_BURST_ALERT)
            logger.warning(f"Rapid typing burst: {inserted} chars in {gap:.1f}ms")

        self.keystrokes.append(KeystrokeEvent(
            key=new_input[-1] if new_input else "backspace",
            timestamp=now_ms,
            time_between_keystrokes=max(0.0, gap),
            is_correction=len(new_input) < len(self.user_input),
        ))
        self._last_keystroke_ms = now_ms

    def register_focus_loss(self) -> None:
        """Candidate left the test window (blur or hidden tab)."""
        if self.state != TypingState.ACTIVE:
            return
        self.focus_lost_count += 1
        logger.info(f"Focus lost during typing test ({self.focus_lost_count})")

    async def submit(self) -> TypingTestResult:
        """Manual early submit."""
        return await self.finalize(auto_submitted=False)

    async def _on_timeout(self) -> None:
        await self.finalize(auto_submitted=True)

    async def finalize(self, auto_submitted: bool) -> TypingTestResult:
        """Compute the final result once and hand it to ``on_complete``."""
        if self.result is not None:
            return self.result
        if self.cancelled:
            raise PhaseTransitionError("Typing test was cancelled")

        self.state = TypingState.COMPLETED
        self.timer.cancel()

        stats = self.live_stats()
        fraud_score, fraud_indicators = 0.0, []
        if self.config.fraud_detection_enabled:
            fraud_score, fraud_indicators = calculate_fraud_score(
                average_keystroke_interval(self.keystrokes),
                self.focus_lost_count,
                self.fraud_alerts,
            )

        self.result = TypingTestResult(
            wpm=stats.wpm,
            accuracy=stats.accuracy,
            characters_typed=stats.characters_typed,
            errors_made=stats.errors_count,
            corrections_made=stats.corrections_count,
            time_spent=min(self.config.typing_test_duration, round_half_up(self.elapsed_seconds())),
            passed=is_passing(stats.wpm, stats.accuracy, fraud_score, self.config),
            fraud_score=fraud_score,
            fraud_indicators=fraud_indicators,
            auto_submitted=auto_submitted,
            test_duration=self.config.typing_test_duration,
            paragraph_used=self.reference_text,
            minimum_wpm_required=self.config.minimum_wpm,
            minimum_accuracy_required=self.config.minimum_accuracy,
            focus_lost_count=self.focus_lost_count,
            keystroke_data=list(self.keystrokes),
        )
        logger.info(
            f"Typing test finished: {self.result.wpm} WPM, {self.result.accuracy}% accuracy, "
            f"fraud {self.result.fraud_score}, passed={self.result.passed}"
        )

        if self.on_complete is not None:
            await self.on_complete(self.result)
        return self.result

    def cancel(self) -> None:
        """Abandon the test; nothing is produced or persisted."""
        self.timer.cancel()
        self.cancelled = True
        self.state = TypingState.COMPLETED
