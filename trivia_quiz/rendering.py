"""
Pure presentation of the quiz state.

``render`` turns a SessionState into a QuizView; the Discord layer only
translates that view into an embed and buttons.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .models import QuizStatus, SessionState

APP_TITLE = "The Trivia Quiz"

START_ID = "quiz:start"
RESTART_ID = "quiz:restart"
ANSWER_PREFIX = "quiz:answer:"
NEXT_PREFIX = "quiz:next:"
FINISH_PREFIX = "quiz:finish:"

COLOR_INFO = 0x1098ad
COLOR_ERROR = 0xff0000
COLOR_ACTIVE = 0x00aa88
COLOR_FINISHED = 0xffaa00


@dataclass(frozen=True)
class ButtonSpec:
    custom_id: str
    label: str
    style: str = "secondary"
    disabled: bool = False
    row: int = 0


@dataclass
class QuizView:
    """Everything a front-end needs to draw one quiz screen."""
    title: str
    description: str
    color: int = COLOR_INFO
    fields: List[Tuple[str, str]] = field(default_factory=list)
    footer: Optional[str] = None
    buttons: List[ButtonSpec] = field(default_factory=list)


def answer_id(question_index: int, option_index: int) -> str:
    return f"{ANSWER_PREFIX}{question_index}:{option_index}"


def next_id(question_index: int) -> str:
    return f"{NEXT_PREFIX}{question_index}"


def finish_id(question_index: int) -> str:
    return f"{FINISH_PREFIX}{question_index}"


def parse_answer_id(custom_id: str) -> Optional[Tuple[int, int]]:
    """Extract (question index, option index) from an answer button id, None for other ids."""
    if not custom_id.startswith(ANSWER_PREFIX):
        return None
    parts = custom_id[len(ANSWER_PREFIX):].split(":")
    if len(parts) != 2:
        return None
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        return None


def parse_advance_id(custom_id: str) -> Optional[int]:
    """Extract the question index from a Next or Finish button id, None for other ids."""
    for prefix in (NEXT_PREFIX, FINISH_PREFIX):
        if custom_id.startswith(prefix):
            try:
                return int(custom_id[len(prefix):])
            except ValueError:
                return None
    return None


def format_time(seconds: Optional[int]) -> str:
    """Format a number of seconds as zero-padded MM:SS."""
    seconds = max(seconds or 0, 0)
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def finish_emoji(percentage: float) -> str:
    if percentage >= 100:
        return "🥇"
    if percentage >= 80:
        return "🎉"
    if percentage >= 50:
        return "🙃"
    if percentage > 0:
        return "🤨"
    return "🤦"


def score_percentage(score: int, max_possible_points: int) -> float:
    if max_possible_points <= 0:
        return 0.0
    return score / max_possible_points * 100


def progress_bar(value: int, maximum: int, width: int = 10) -> str:
    """Text progress bar, e.g. ``▰▰▰▱▱▱▱▱▱▱``."""
    if maximum <= 0:
        return "▱" * width
    filled = round(width * min(max(value, 0), maximum) / maximum)
    return "▰" * filled + "▱" * (width - filled)


def _option_style(state: SessionState, option_index: int) -> str:
    if not state.has_answered:
        return "secondary"
    question = state.current_question
    if question.is_correct(option_index):
        return "success"
    if option_index == state.selected_answer:
        return "danger"
    return "secondary"


def _render_active(state: SessionState) -> QuizView:
    question = state.current_question
    view = QuizView(
        title=APP_TITLE,
        description=f"**{question.text}**",
        color=COLOR_ACTIVE,
        footer=f"⏱ {format_time(state.seconds_remaining)}",
    )
    view.fields.append((
        f"Question {state.current_index + 1} / {state.num_questions}",
        progress_bar(state.progress_value, state.num_questions),
    ))
    view.fields.append(("Points", f"**{state.score}** / {state.max_possible_points}"))

    letters = "ABCD"
    for i, option in enumerate(question.options):
        label = f"{letters[i] if i < len(letters) else i + 1}. {option}"
        view.buttons.append(ButtonSpec(
            custom_id=answer_id(state.current_index, i),
            label=label[:80],
            style=_option_style(state, i),
            disabled=state.has_answered,
            row=i // 2,
        ))

    if state.has_answered:
        if state.is_last_question:
            view.buttons.append(ButtonSpec(finish_id(state.current_index), "Finish", "primary", row=2))
        else:
            view.buttons.append(ButtonSpec(next_id(state.current_index), "Next", "primary", row=2))
    return view


def _render_finished(state: SessionState) -> QuizView:
    percentage = score_percentage(state.score, state.max_possible_points)
    view = QuizView(
        title=APP_TITLE,
        description=(
            f"{finish_emoji(percentage)} You scored **{state.score}** out of "
            f"{state.max_possible_points} ({percentage:.0f}%)"
        ),
        color=COLOR_FINISHED,
        footer=f"(Highscore: {state.high_score} points)",
    )
    if state.seconds_remaining == 0:
        view.fields.append(("⏱ Time's up", "The quiz ended when the timer ran out."))
    view.buttons.append(ButtonSpec(RESTART_ID, "Restart quiz", "primary"))
    return view


def render(state: SessionState) -> QuizView:
    """Build the view for the current status."""
    if state.status == QuizStatus.LOADING:
        return QuizView(title=APP_TITLE, description="Loading questions...")

    if state.status == QuizStatus.ERROR:
        return QuizView(
            title=APP_TITLE,
            description="💥 There was an error fetching questions.",
            color=COLOR_ERROR,
        )

    if state.status == QuizStatus.READY:
        return QuizView(
            title=f"Welcome to {APP_TITLE}!",
            description=f"{state.num_questions} questions to test your knowledge",
            buttons=[ButtonSpec(START_ID, "Let's start", "primary", disabled=not state.questions)],
        )

    if state.status == QuizStatus.ACTIVE:
        return _render_active(state)

    return _render_finished(state)
