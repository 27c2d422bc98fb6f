"""
Events understood by the quiz state machine.

Every event is a small frozen dataclass; ``QuizEvent`` is the union of all of
them. Nothing outside this module invents new event kinds.
"""
from dataclasses import dataclass
from typing import Tuple, Union

from .models import Question

SECONDS_PER_QUESTION = 30


@dataclass(frozen=True)
class QuestionsLoaded:
    questions: Tuple[Question, ...]

    def __post_init__(self):
        # Accept any iterable but always store an immutable tuple
        object.__setattr__(self, "questions", tuple(self.questions))


@dataclass(frozen=True)
class LoadFailed:
    reason: str = ""


@dataclass(frozen=True)
class Start:
    seconds_per_question: int = SECONDS_PER_QUESTION


@dataclass(frozen=True)
class AnswerSelected:
    option_index: int


@dataclass(frozen=True)
class NextQuestion:
    pass


@dataclass(frozen=True)
class Finish:
    pass


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Restart:
    pass


QuizEvent = Union[
    QuestionsLoaded,
    LoadFailed,
    Start,
    AnswerSelected,
    NextQuestion,
    Finish,
    Tick,
    Restart,
]
