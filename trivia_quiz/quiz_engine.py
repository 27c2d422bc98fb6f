"""
Quiz engine core logic for the trivia quiz.
Holds the pure state transition function and the countdown timer that feeds it.
"""
import asyncio
import logging
import time
from dataclasses import replace
from typing import Any, Callable, Iterable, Optional

from .errors import InvalidEventError, UnknownEventError
from .events import (
    SECONDS_PER_QUESTION,
    AnswerSelected,
    Finish,
    LoadFailed,
    NextQuestion,
    QuestionsLoaded,
    QuizEvent,
    Restart,
    Start,
    Tick,
)
from .models import QuizStatus, SessionState

# Set up logger for timer operations
logger = logging.getLogger(__name__)

__all__ = [
    "SECONDS_PER_QUESTION",
    "initial_state",
    "transition",
    "apply_events",
    "QuizTimer",
    "TimerLifecycleLogger",
]


def initial_state() -> SessionState:
    """State of a freshly started application: nothing loaded yet."""
    return SessionState()


def _require_status(state: SessionState, event: QuizEvent, *allowed: QuizStatus) -> None:
    if state.status not in allowed:
        expected = ", ".join(status.value for status in allowed)
        raise InvalidEventError(event, state.status, f"expected status {expected}")


def _finished(state: SessionState, **changes) -> SessionState:
    return replace(
        state,
        status=QuizStatus.FINISHED,
        high_score=max(state.high_score, state.score),
        **changes
    )


def _on_questions_loaded(state: SessionState, event: QuestionsLoaded) -> SessionState:
    _require_status(state, event, QuizStatus.LOADING)
    return replace(state, questions=event.questions, status=QuizStatus.READY)


def _on_load_failed(state: SessionState, event: LoadFailed) -> SessionState:
    _require_status(state, event, QuizStatus.LOADING)
    return replace(state, status=QuizStatus.ERROR)


def _on_start(state: SessionState, event: Start) -> SessionState:
    _require_status(state, event, QuizStatus.READY)
    if not state.questions:
        raise InvalidEventError(event, state.status, "no questions to play")
    if event.seconds_per_question <= 0:
        raise InvalidEventError(event, state.status, "seconds per question must be positive")
    return replace(
        state,
        status=QuizStatus.ACTIVE,
        seconds_remaining=len(state.questions) * event.seconds_per_question,
    )


def _on_answer_selected(state: SessionState, event: AnswerSelected) -> SessionState:
    _require_status(state, event, QuizStatus.ACTIVE)
    if state.selected_answer is not None:
        raise InvalidEventError(event, state.status, "current question already answered")
    question = state.current_question
    if question is None:
        raise InvalidEventError(event, state.status, "no current question")
    if not 0 <= event.option_index < len(question.options):
        raise InvalidEventError(
            event, state.status, f"option {event.option_index} out of range"
        )

    score = state.score
    if question.is_correct(event.option_index):
        score += question.points
    return replace(state, selected_answer=event.option_index, score=score)


def _on_next_question(state: SessionState, event: NextQuestion) -> SessionState:
    _require_status(state, event, QuizStatus.ACTIVE)
    if state.selected_answer is None:
        raise InvalidEventError(event, state.status, "current question not answered yet")
    # The last question is closed with Finish, never by advancing past it
    if state.current_index >= len(state.questions) - 1:
        raise InvalidEventError(event, state.status, "already on the last question")
    return replace(state, current_index=state.current_index + 1, selected_answer=None)


def _on_finish(state: SessionState, event: Finish) -> SessionState:
    _require_status(state, event, QuizStatus.ACTIVE)
    return _finished(state)


def _on_tick(state: SessionState, event: Tick) -> SessionState:
    _require_status(state, event, QuizStatus.ACTIVE)
    seconds_remaining = max(state.seconds_remaining - 1, 0)
    if seconds_remaining == 0:
        return _finished(state, seconds_remaining=0)
    return replace(state, seconds_remaining=seconds_remaining)


def _on_restart(state: SessionState, event: Restart) -> SessionState:
    _require_status(state, event, QuizStatus.READY, QuizStatus.FINISHED)
    return SessionState(
        questions=state.questions,
        status=QuizStatus.READY,
        high_score=state.high_score,
    )


_HANDLERS = {
    QuestionsLoaded: _on_questions_loaded,
    LoadFailed: _on_load_failed,
    Start: _on_start,
    AnswerSelected: _on_answer_selected,
    NextQuestion: _on_next_question,
    Finish: _on_finish,
    Tick: _on_tick,
    Restart: _on_restart,
}


def transition(state: SessionState, event: QuizEvent) -> SessionState:
    """
    Apply a single event to a session state.

    The input state is never modified; a new state is returned.

    Args:
        state: Current session state
        event: Event to apply

    Returns:
        The resulting session state

    Raises:
        UnknownEventError: If ``event`` is not a quiz event
        InvalidEventError: If the event's precondition does not hold
    """
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise UnknownEventError(f"Unknown quiz event: {event!r}")
    return handler(state, event)


def apply_events(state: SessionState, events: Iterable[QuizEvent]) -> SessionState:
    """Fold a sequence of events over a state; an invalid event raises as in ``transition``."""
    for event in events:
        state = transition(state, event)
    return state


class TimerLifecycleLogger:
    """Structured logging for timer lifecycle events."""

    @staticmethod
    def log_timer_start(timer_name: str, interval: float) -> None:
        """Log timer countdown start."""
        logger.info(
            f"Timer lifecycle: COUNTDOWN_START - Timer {timer_name}, Interval {interval:.3f}s",
            extra={
                'event_type': 'timer_countdown_start',
                'timer_name': timer_name,
                'interval': interval,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_tick(timer_name: str, ticks_emitted: int) -> None:
        """Log tick events (throttled to avoid spam)."""
        if ticks_emitted % 10 == 0:
            logger.debug(
                f"Timer lifecycle: TICK - Timer {timer_name}, Ticks {ticks_emitted}",
                extra={
                    'event_type': 'timer_tick',
                    'timer_name': timer_name,
                    'ticks_emitted': ticks_emitted,
                    'timestamp': time.time()
                }
            )

    @staticmethod
    def log_timer_completion(timer_name: str, completion_type: str, ticks_emitted: int) -> None:
        """Log timer completion (cancellation or failure)."""
        logger.info(
            f"Timer lifecycle: COMPLETED - Timer {timer_name}, Type {completion_type}, Ticks {ticks_emitted}",
            extra={
                'event_type': 'timer_completed',
                'timer_name': timer_name,
                'completion_type': completion_type,
                'ticks_emitted': ticks_emitted,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_state_transition(timer_name: str, from_state: str, to_state: str, reason: str = None) -> None:
        """Log timer state transitions."""
        logger.info(
            f"Timer lifecycle: STATE_TRANSITION - Timer {timer_name}, {from_state} -> {to_state}" +
            (f" ({reason})" if reason else ""),
            extra={
                'event_type': 'timer_state_transition',
                'timer_name': timer_name,
                'from_state': from_state,
                'to_state': to_state,
                'reason': reason,
                'timestamp': time.time()
            }
        )

    @staticmethod
    def log_timer_error(timer_name: str, error_type: str, error_message: str, operation: str) -> None:
        """Log timer-related errors with context."""
        logger.error(
            f"Timer lifecycle: ERROR - Timer {timer_name}, Operation {operation}, Type {error_type}: {error_message}",
            extra={
                'event_type': 'timer_error',
                'timer_name': timer_name,
                'error_type': error_type,
                'error_message': error_message,
                'operation': operation,
                'timestamp': time.time()
            }
        )


class QuizTimer:
    """
    Emits a tick callback at a fixed interval until cancelled.

    Once ``cancel()`` has returned the callback is never invoked again: the
    cancelled flag is checked after every sleep and before every tick.
    """

    def __init__(self, interval: float = 1.0, name: str = "quiz"):
        """Initialize the timer."""
        self._interval = interval
        self._name = name
        self._task: Optional[asyncio.Task] = None
        self._is_cancelled = False
        self._ticks_emitted = 0

        logger.debug(
            f"QuizTimer instance created ({name})",
            extra={
                'event_type': 'timer_instance_created',
                'timer_name': name,
                'timestamp': time.time()
            }
        )

    def start(self, on_tick: Callable[[], Any]) -> asyncio.Task:
        """
        Start ticking in a background task.

        Args:
            on_tick: Called once per interval while the timer runs

        Raises:
            RuntimeError: If the timer is already running
        """
        if self.is_running:
            raise RuntimeError(f"Timer {self._name} is already running")

        self._is_cancelled = False
        self._ticks_emitted = 0
        self._task = asyncio.create_task(self._run(on_tick))
        TimerLifecycleLogger.log_timer_state_transition(self._name, "idle", "running", "start requested")
        return self._task

    def _owns_current_task(self) -> bool:
        # A superseded run must never tick or touch the flags of its replacement
        return asyncio.current_task() is self._task

    def _should_tick(self) -> bool:
        return not self._is_cancelled and self._owns_current_task()

    async def _run(self, on_tick: Callable[[], Any]) -> None:
        TimerLifecycleLogger.log_timer_start(self._name, self._interval)
        try:
            while self._should_tick():
                await asyncio.sleep(self._interval)
                if not self._should_tick():
                    break
                self._ticks_emitted += 1
                TimerLifecycleLogger.log_timer_tick(self._name, self._ticks_emitted)
                on_tick()

            TimerLifecycleLogger.log_timer_completion(self._name, "cancelled", self._ticks_emitted)

        except asyncio.CancelledError:
            if self._owns_current_task():
                self._is_cancelled = True
            TimerLifecycleLogger.log_timer_completion(self._name, "asyncio_cancelled", self._ticks_emitted)
            raise
        except Exception as e:
            if self._owns_current_task():
                self._is_cancelled = True
            TimerLifecycleLogger.log_timer_error(self._name, type(e).__name__, str(e), "on_tick")
            logger.exception(f"Tick callback failed, timer {self._name} stopped")

    def cancel(self) -> None:
        """Cancel the timer. Safe to call repeatedly and from inside the tick callback."""
        if self._is_cancelled:
            return

        self._is_cancelled = True
        task = self._task
        if task is None or task.done():
            TimerLifecycleLogger.log_timer_state_transition(self._name, "running", "cancelled", "no active task")
            return

        # From inside on_tick the loop exits on the flag; cancelling ourselves is not needed
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()
        TimerLifecycleLogger.log_timer_state_transition(self._name, "running", "cancelled", "cancel requested")

    async def stop(self) -> None:
        """Cancel the timer and wait until its task has finished."""
        self.cancel()
        task = self._task
        if task is not None and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)

    @property
    def is_running(self) -> bool:
        """Check if the timer task is alive and not cancelled."""
        return self._task is not None and not self._task.done() and not self._is_cancelled

    @property
    def is_cancelled(self) -> bool:
        """Check if timer is cancelled."""
        return self._is_cancelled

    @property
    def ticks_emitted(self) -> int:
        """Number of ticks delivered since the last start."""
        return self._ticks_emitted

    @property
    def interval(self) -> float:
        return self._interval
