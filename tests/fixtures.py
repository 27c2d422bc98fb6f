"""
Test fixtures and sample data for trivia quiz tests.
"""
from typing import Dict, List
from unittest.mock import AsyncMock, Mock

from trivia_quiz.events import QuestionsLoaded
from trivia_quiz.models import Question, QuizStatus, SessionState
from trivia_quiz.quiz_engine import initial_state, transition


class QuizFixtures:
    """Centralized test fixtures for all test modules."""

    @staticmethod
    def create_sample_questions() -> List[Question]:
        """Create sample questions for testing."""
        return [
            Question("What is 2+2?", ("3", "5", "4", "22"), 2, 10),
            Question("What is the capital of France?", ("London", "Berlin", "Paris", "Madrid"), 2, 20),
            Question("What color is a clear sky?", ("Blue", "Green", "Red", "Grey"), 0, 10),
        ]

    @staticmethod
    def create_question_records() -> List[Dict]:
        """Create question records as served by the question API."""
        return [
            {
                "question": "Which is the largest planet?",
                "options": ["Earth", "Mars", "Jupiter", "Saturn"],
                "correctOption": 2,
                "points": 10
            },
            {
                "question": "What is 10 + 5?",
                "options": ["10", "15", "20", "25"],
                "correctOption": 1,
                "points": 20
            }
        ]

    @staticmethod
    def ready_state(questions=None, high_score: int = 0) -> SessionState:
        """State right after questions were loaded."""
        questions = QuizFixtures.create_sample_questions() if questions is None else questions
        state = transition(initial_state(), QuestionsLoaded(questions))
        if high_score:
            state = SessionState(questions=state.questions, status=QuizStatus.READY, high_score=high_score)
        return state


class MockDiscordObjects:
    """Mock Discord objects for front-end tests."""

    @staticmethod
    def create_mock_interaction():
        interaction = Mock()
        interaction.response = Mock()
        interaction.response.send_message = AsyncMock()
        interaction.response.edit_message = AsyncMock()
        interaction.original_response = AsyncMock(return_value=Mock())
        interaction.message = Mock()
        interaction.message.edit = AsyncMock()
        return interaction
