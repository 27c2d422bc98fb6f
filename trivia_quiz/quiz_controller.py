"""
Quiz session controller for the trivia quiz.
Owns the session state, applies events to it and keeps the timer in step.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

from .errors import InvalidEventError
from .events import (
    SECONDS_PER_QUESTION,
    AnswerSelected,
    Finish,
    NextQuestion,
    QuizEvent,
    Restart,
    Start,
    Tick,
)
from .models import QuizStatus, SessionState
from .quiz_engine import QuizTimer, initial_state, transition

StateListener = Callable[[SessionState, SessionState, QuizEvent], Any]


class QuizController:
    """
    Single writer of the quiz session state.

    Every change goes through ``dispatch``. Events whose precondition does not
    hold are logged and dropped, leaving the state untouched. The timer runs
    exactly while the status is Active.
    """

    def __init__(
        self,
        timer: Optional[QuizTimer] = None,
        seconds_per_question: int = SECONDS_PER_QUESTION,
        state: Optional[SessionState] = None
    ):
        """
        Initialize the quiz controller.

        Args:
            timer: Timer driving Tick events, a one-second timer if None
            seconds_per_question: Time budget per question used by ``start``
            state: Starting state, the initial Loading state if None
        """
        self.logger = logging.getLogger(__name__)
        self.timer = timer or QuizTimer()
        self.seconds_per_question = seconds_per_question
        self._state = state or initial_state()
        self._listeners: List[StateListener] = []
        self.diagnostics: List[InvalidEventError] = []

        self.logger.info("QuizController initialized")

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    def subscribe(self, listener: StateListener) -> None:
        """Register a callback receiving (previous, current, event) after every accepted event."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def dispatch(self, event: QuizEvent) -> SessionState:
        """
        Apply an event to the current state.

        Args:
            event: Event to apply

        Returns:
            The state after the event (unchanged if the event was rejected)

        Raises:
            UnknownEventError: If ``event`` is not a quiz event
        """
        previous = self._state
        try:
            current = transition(previous, event)
        except InvalidEventError as e:
            self.diagnostics.append(e)
            self.logger.warning(f"Ignored event: {e}")
            return previous

        self._state = current
        if previous.status != current.status:
            self.logger.info(
                f"Quiz status {previous.status.value} -> {current.status.value} "
                f"({type(event).__name__})"
            )

        self._sync_timer(previous, current)
        self._notify(previous, current, event)
        return current

    def _sync_timer(self, previous: SessionState, current: SessionState) -> None:
        if current.status == QuizStatus.ACTIVE and previous.status != QuizStatus.ACTIVE:
            self.timer.start(self._on_tick)
        elif previous.status == QuizStatus.ACTIVE and current.status != QuizStatus.ACTIVE:
            self.timer.cancel()

    def _on_tick(self) -> None:
        self.dispatch(Tick())

    def _notify(self, previous: SessionState, current: SessionState, event: QuizEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(previous, current, event)
            except Exception as e:
                self.logger.error(f"State listener {listener!r} failed: {e}")

    async def load_questions(self, source) -> SessionState:
        """
        Load the question set once and dispatch the outcome.

        Args:
            source: Object with an async ``load_event()`` returning QuestionsLoaded or LoadFailed

        Returns:
            The resulting state (Ready or Error)
        """
        event = await source.load_event()
        return self.dispatch(event)

    def start(self) -> SessionState:
        return self.dispatch(Start(seconds_per_question=self.seconds_per_question))

    def answer(self, option_index: int) -> SessionState:
        return self.dispatch(AnswerSelected(option_index))

    def advance(self) -> SessionState:
        """Move to the next question, or finish the quiz after the last one."""
        if self._state.status == QuizStatus.ACTIVE and self._state.is_last_question:
            return self.dispatch(Finish())
        return self.dispatch(NextQuestion())

    def finish(self) -> SessionState:
        return self.dispatch(Finish())

    def restart(self) -> SessionState:
        return self.dispatch(Restart())

    async def shutdown(self) -> None:
        """Stop the timer and wait for it to wind down."""
        await self.timer.stop()
        self.logger.info("QuizController shut down")

    def get_session_summary(self) -> Dict[str, Any]:
        """
        Get a snapshot of the session for status displays.

        Returns:
            Dictionary with status, progress, scores and time left
        """
        state = self._state
        return {
            'status': state.status.value,
            'current_question': min(state.current_index + 1, state.num_questions),
            'total_questions': state.num_questions,
            'answered': state.has_answered,
            'score': state.score,
            'max_possible_points': state.max_possible_points,
            'high_score': state.high_score,
            'seconds_remaining': state.seconds_remaining,
            'timer_running': self.timer.is_running,
        }
