"""
Core data models for the trivia quiz.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


@dataclass(frozen=True)
class Question:
    """Represents a single quiz question."""
    text: str
    options: Tuple[str, ...]
    correct_option: int
    points: int

    def is_correct(self, option_index: int) -> bool:
        """Check whether the given option index is the right answer."""
        return option_index == self.correct_option


class QuizStatus(Enum):
    """Enumeration of possible quiz session states."""
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"
    ACTIVE = "active"
    FINISHED = "finished"


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the whole quiz session. Replaced, never mutated."""
    questions: Tuple[Question, ...] = field(default_factory=tuple)
    status: QuizStatus = QuizStatus.LOADING
    current_index: int = 0
    selected_answer: Optional[int] = None
    score: int = 0
    high_score: int = 0
    seconds_remaining: Optional[int] = None

    @property
    def num_questions(self) -> int:
        return len(self.questions)

    @property
    def max_possible_points(self) -> int:
        """Sum of the points of every loaded question."""
        return sum(question.points for question in self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    @property
    def has_answered(self) -> bool:
        return self.selected_answer is not None

    @property
    def is_last_question(self) -> bool:
        return self.current_index >= len(self.questions) - 1

    @property
    def progress_value(self) -> int:
        """Questions done so far, counting the current one once answered."""
        return self.current_index + int(self.has_answered)


@dataclass
class QuizSettings:
    """Configuration settings for the quiz application."""
    questions_url: str = "http://localhost:8000/questions"
    seconds_per_question: int = 30
    tick_interval: float = 1.0
    request_timeout: float = 10.0
    timer_refresh_seconds: int = 5
