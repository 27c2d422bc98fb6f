"""
Question source: fetches the question set from the local quiz API.
"""
import logging
from typing import Any, List, Optional, Tuple

import httpx

from .errors import LoadFailure
from .events import LoadFailed, QuestionsLoaded, QuizEvent
from .models import Question

logger = logging.getLogger(__name__)

DEFAULT_QUESTIONS_URL = "http://localhost:8000/questions"
OPTIONS_PER_QUESTION = 4


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_question_records(data: Any) -> List[dict]:
    """
    Validate that decoded JSON has the question list structure.

    Expected structure:
    [
        {
            "question": str,
            "options": [str, str, str, str],
            "correctOption": int,
            "points": int
        }
    ]

    A ``{"questions": [...]}`` wrapper object is unwrapped first.

    Args:
        data: Decoded JSON payload

    Returns:
        The list of question records

    Raises:
        LoadFailure: If the structure is invalid
    """
    if isinstance(data, dict) and "questions" in data:
        data = data["questions"]

    if not isinstance(data, list):
        raise LoadFailure("Question data must be a JSON array")

    for i, record in enumerate(data):
        if not isinstance(record, dict):
            raise LoadFailure(f"Question {i} must be an object")

        for key in ("question", "options", "correctOption", "points"):
            if key not in record:
                raise LoadFailure(f"Question {i} missing '{key}' field")

        if not isinstance(record["question"], str):
            raise LoadFailure(f"Question {i} 'question' field must be a string")

        options = record["options"]
        if not isinstance(options, list) or not all(isinstance(option, str) for option in options):
            raise LoadFailure(f"Question {i} 'options' field must be an array of strings")
        if len(options) != OPTIONS_PER_QUESTION:
            raise LoadFailure(
                f"Question {i} must have exactly {OPTIONS_PER_QUESTION} options, got {len(options)}"
            )

        correct = record["correctOption"]
        if not _is_int(correct) or not 0 <= correct < len(options):
            raise LoadFailure(f"Question {i} 'correctOption' must index one of its options")

        points = record["points"]
        if not _is_int(points) or points < 0:
            raise LoadFailure(f"Question {i} 'points' must be a non-negative integer")

    return data


def parse_questions(data: Any) -> Tuple[Question, ...]:
    """
    Validate and convert decoded JSON into Question objects.

    Raises:
        LoadFailure: If the structure is invalid
    """
    records = validate_question_records(data)
    return tuple(
        Question(
            text=record["question"],
            options=tuple(record["options"]),
            correct_option=record["correctOption"],
            points=record["points"]
        )
        for record in records
    )


class QuestionSource:
    """Loads the question set with a single GET request."""

    def __init__(
        self,
        url: str = DEFAULT_QUESTIONS_URL,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize the source.

        Args:
            url: Endpoint returning the JSON array of questions
            timeout: Request timeout in seconds
            client: Optional pre-configured client, owned by the caller
        """
        self.url = url
        self.timeout = timeout
        self._client = client
        self.logger = logging.getLogger(__name__)

    async def fetch(self) -> Tuple[Question, ...]:
        """
        Fetch and parse the questions.

        Raises:
            LoadFailure: On transport errors, non-2xx responses, invalid JSON or structure
        """
        self.logger.info(f"Fetching questions from {self.url}")
        try:
            if self._client is not None:
                response = await self._client.get(self.url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(self.url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise LoadFailure(f"Question API returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise LoadFailure(f"Could not reach question API: {e}") from e
        except ValueError as e:
            raise LoadFailure(f"Invalid JSON from question API: {e}") from e

        questions = parse_questions(data)
        self.logger.info(f"Loaded {len(questions)} questions")
        return questions

    async def load_event(self) -> QuizEvent:
        """Fetch the questions and express the outcome as a quiz event."""
        try:
            questions = await self.fetch()
        except LoadFailure as e:
            self.logger.error(f"Failed to load questions: {e}")
            return LoadFailed(reason=str(e))
        return QuestionsLoaded(questions)
