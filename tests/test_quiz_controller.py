"""
Unit tests for the QuizController class.
"""
import asyncio
import unittest
from unittest.mock import AsyncMock, Mock

from trivia_quiz.errors import InvalidEventError, UnknownEventError
from trivia_quiz.events import AnswerSelected, LoadFailed, NextQuestion, QuestionsLoaded, Tick
from trivia_quiz.models import QuizStatus
from trivia_quiz.quiz_controller import QuizController
from trivia_quiz.quiz_engine import QuizTimer
from tests.fixtures import QuizFixtures


def make_controller(**kwargs) -> QuizController:
    timer = Mock(spec=QuizTimer)
    timer.is_running = False
    return QuizController(timer=timer, state=QuizFixtures.ready_state(), **kwargs)


class TestQuizControllerDispatch(unittest.TestCase):
    """Test cases for dispatching events with a mocked timer."""

    def setUp(self):
        """Set up test fixtures."""
        self.controller = make_controller(seconds_per_question=10)

    def test_start_uses_configured_budget(self):
        state = self.controller.start()
        self.assertEqual(state.status, QuizStatus.ACTIVE)
        self.assertEqual(state.seconds_remaining, 30)
        self.controller.timer.start.assert_called_once()

    def test_second_answer_is_ignored(self):
        """Test a repeated answer leaves score and selection unchanged."""
        self.controller.start()
        first = self.controller.answer(2)
        second = self.controller.answer(0)

        self.assertIs(second, first)
        self.assertEqual(second.score, 10)
        self.assertEqual(second.selected_answer, 2)
        self.assertEqual(len(self.controller.diagnostics), 1)
        self.assertIsInstance(self.controller.diagnostics[0], InvalidEventError)

    def test_rejected_event_is_logged(self):
        with self.assertLogs('trivia_quiz.quiz_controller', level='WARNING'):
            self.controller.dispatch(NextQuestion())
        self.assertEqual(self.controller.state.status, QuizStatus.READY)

    def test_unknown_event_propagates(self):
        with self.assertRaises(UnknownEventError):
            self.controller.dispatch("tick")

    def test_advance_finishes_on_last_question(self):
        """Test advance() moves on normally and finishes after the last question."""
        self.controller.start()
        for _ in range(2):
            self.controller.answer(2)
            state = self.controller.advance()
            self.assertEqual(state.status, QuizStatus.ACTIVE)

        self.controller.answer(0)
        state = self.controller.advance()

        self.assertEqual(state.status, QuizStatus.FINISHED)
        self.assertEqual(state.current_index, 2)
        self.assertEqual(state.high_score, 40)
        self.controller.timer.cancel.assert_called_once()

    def test_advance_without_answer_is_ignored(self):
        self.controller.start()
        state = self.controller.advance()
        self.assertEqual(state.current_index, 0)
        self.assertEqual(len(self.controller.diagnostics), 1)

    def test_timer_cancelled_before_listeners_run(self):
        """Test listeners only ever see a stopped timer once the quiz left Active."""
        seen = []
        self.controller.subscribe(
            lambda previous, current, event: seen.append(self.controller.timer.cancel.called)
        )
        self.controller.start()
        self.controller.finish()

        self.assertEqual(seen, [False, True])

    def test_restart_after_finish(self):
        self.controller.start()
        self.controller.answer(2)
        self.controller.finish()
        state = self.controller.restart()

        self.assertEqual(state.status, QuizStatus.READY)
        self.assertEqual(state.score, 0)
        self.assertEqual(state.high_score, 10)

    def test_listener_receives_transitions(self):
        listener = Mock()
        self.controller.subscribe(listener)
        self.controller.start()

        listener.assert_called_once()
        previous, current, event = listener.call_args[0]
        self.assertEqual(previous.status, QuizStatus.READY)
        self.assertEqual(current.status, QuizStatus.ACTIVE)

    def test_listener_not_called_for_rejected_event(self):
        listener = Mock()
        self.controller.subscribe(listener)
        self.controller.dispatch(AnswerSelected(1))
        listener.assert_not_called()

    def test_failing_listener_does_not_corrupt_state(self):
        self.controller.subscribe(Mock(side_effect=RuntimeError("render failed")))
        with self.assertLogs('trivia_quiz.quiz_controller', level='ERROR'):
            state = self.controller.start()
        self.assertEqual(state.status, QuizStatus.ACTIVE)
        self.assertIs(self.controller.state, state)

    def test_unsubscribe(self):
        listener = Mock()
        self.controller.subscribe(listener)
        self.controller.unsubscribe(listener)
        self.controller.start()
        listener.assert_not_called()

    def test_session_summary(self):
        self.controller.start()
        self.controller.answer(2)
        summary = self.controller.get_session_summary()

        self.assertEqual(summary['status'], 'active')
        self.assertEqual(summary['current_question'], 1)
        self.assertEqual(summary['total_questions'], 3)
        self.assertTrue(summary['answered'])
        self.assertEqual(summary['score'], 10)
        self.assertEqual(summary['max_possible_points'], 40)
        self.assertEqual(summary['seconds_remaining'], 30)


class TestQuizControllerLoading(unittest.IsolatedAsyncioTestCase):
    """Test cases for loading questions through a source."""

    async def test_load_success(self):
        controller = QuizController(timer=Mock(spec=QuizTimer))
        source = Mock()
        source.load_event = AsyncMock(return_value=QuestionsLoaded(QuizFixtures.create_sample_questions()))

        state = await controller.load_questions(source)

        self.assertEqual(state.status, QuizStatus.READY)
        self.assertEqual(state.num_questions, 3)

    async def test_load_failure(self):
        controller = QuizController(timer=Mock(spec=QuizTimer))
        source = Mock()
        source.load_event = AsyncMock(return_value=LoadFailed("HTTP 500"))

        state = await controller.load_questions(source)

        self.assertEqual(state.status, QuizStatus.ERROR)


class TestQuizControllerWithTimer(unittest.IsolatedAsyncioTestCase):
    """Test cases running the real timer."""

    async def asyncSetUp(self):
        self.controller = QuizController(
            timer=QuizTimer(interval=0.005),
            seconds_per_question=2,
            state=QuizFixtures.ready_state(QuizFixtures.create_sample_questions()[:2])
        )

    async def asyncTearDown(self):
        await self.controller.shutdown()

    async def test_timer_runs_quiz_to_finish(self):
        """Test ticks count down and finish the quiz exactly once."""
        finished = []
        self.controller.subscribe(
            lambda previous, current, event: finished.append(event)
            if current.status == QuizStatus.FINISHED and previous.status == QuizStatus.ACTIVE else None
        )
        self.controller.start()
        self.controller.answer(2)

        for _ in range(200):
            if self.controller.state.status == QuizStatus.FINISHED:
                break
            await asyncio.sleep(0.005)

        state = self.controller.state
        self.assertEqual(state.status, QuizStatus.FINISHED)
        self.assertEqual(state.seconds_remaining, 0)
        self.assertEqual(state.high_score, 10)
        self.assertEqual(len(finished), 1)
        self.assertIsInstance(finished[0], Tick)
        self.assertFalse(self.controller.timer.is_running)

    async def test_no_ticks_after_finish(self):
        """Test the timer stops as soon as the quiz is finished by hand."""
        self.controller.seconds_per_question = 100
        self.controller.start()
        await asyncio.sleep(0.02)
        state = self.controller.finish()

        await asyncio.sleep(0.03)

        self.assertIs(self.controller.state, state)
        self.assertEqual(self.controller.diagnostics, [])

    async def test_restart_and_play_again(self):
        self.controller.start()
        self.controller.finish()
        self.controller.restart()
        state = self.controller.start()

        self.assertEqual(state.status, QuizStatus.ACTIVE)
        self.assertEqual(state.seconds_remaining, 4)
        await asyncio.sleep(0.03)
        self.assertLess(self.controller.state.seconds_remaining, 4)


if __name__ == '__main__':
    unittest.main()
