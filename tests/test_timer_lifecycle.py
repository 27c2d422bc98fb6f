"""
Unit tests for the quiz countdown timer.
"""
import asyncio
import unittest
from unittest.mock import Mock

from trivia_quiz.quiz_engine import QuizTimer

INTERVAL = 0.01


class TestQuizTimer(unittest.IsolatedAsyncioTestCase):
    """Test cases for QuizTimer ticking and cancellation."""

    async def asyncTearDown(self):
        await self.timer.stop()

    def setUp(self):
        """Set up test fixtures."""
        self.timer = QuizTimer(interval=INTERVAL, name="test")

    async def test_initial_state(self):
        self.assertFalse(self.timer.is_running)
        self.assertFalse(self.timer.is_cancelled)
        self.assertEqual(self.timer.ticks_emitted, 0)
        self.assertEqual(self.timer.interval, INTERVAL)

    async def test_emits_ticks(self):
        """Test the callback fires repeatedly while running."""
        on_tick = Mock()
        self.timer.start(on_tick)
        self.assertTrue(self.timer.is_running)

        await asyncio.sleep(INTERVAL * 10)

        self.assertGreaterEqual(on_tick.call_count, 2)
        self.assertEqual(on_tick.call_count, self.timer.ticks_emitted)

    async def test_no_tick_after_cancel(self):
        """Test nothing is delivered once cancel() has returned."""
        on_tick = Mock()
        self.timer.start(on_tick)
        await asyncio.sleep(INTERVAL * 3)

        self.timer.cancel()
        count = on_tick.call_count
        await asyncio.sleep(INTERVAL * 10)

        self.assertEqual(on_tick.call_count, count)
        self.assertTrue(self.timer.is_cancelled)
        self.assertFalse(self.timer.is_running)

    async def test_cancel_before_first_tick(self):
        on_tick = Mock()
        self.timer.start(on_tick)
        self.timer.cancel()
        await asyncio.sleep(INTERVAL * 5)

        on_tick.assert_not_called()

    async def test_cancel_from_inside_callback(self):
        """Test a callback may stop its own timer."""
        calls = []

        def on_tick():
            calls.append(1)
            if len(calls) == 3:
                self.timer.cancel()

        task = self.timer.start(on_tick)
        await asyncio.wait_for(task, timeout=1)

        self.assertEqual(len(calls), 3)
        self.assertTrue(task.done())
        self.assertFalse(task.cancelled())

    async def test_cancel_is_idempotent(self):
        self.timer.cancel()
        self.timer.start(Mock())
        self.timer.cancel()
        self.timer.cancel()
        self.assertTrue(self.timer.is_cancelled)

    async def test_start_twice_raises(self):
        self.timer.start(Mock())
        with self.assertRaises(RuntimeError):
            self.timer.start(Mock())

    async def test_restart_after_cancel(self):
        """Test a superseded run never ticks into the new one."""
        first = Mock()
        second = Mock()
        self.timer.start(first)
        self.timer.cancel()
        self.timer.start(second)

        await asyncio.sleep(INTERVAL * 6)
        first.assert_not_called()
        self.assertGreaterEqual(second.call_count, 1)
        self.assertTrue(self.timer.is_running)

    async def test_callback_error_stops_timer(self):
        """Test a failing callback is logged and ends the countdown."""
        on_tick = Mock(side_effect=ValueError("bad tick"))
        task = self.timer.start(on_tick)

        with self.assertLogs('trivia_quiz.quiz_engine', level='ERROR'):
            await asyncio.wait_for(task, timeout=1)

        self.assertEqual(on_tick.call_count, 1)
        self.assertTrue(self.timer.is_cancelled)

    async def test_stop_waits_for_task(self):
        task = self.timer.start(Mock())
        await self.timer.stop()
        self.assertTrue(task.done())


if __name__ == '__main__':
    unittest.main()
