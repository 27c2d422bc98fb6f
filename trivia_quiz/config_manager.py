"""
Configuration manager for the trivia quiz settings.
"""
import logging
from dataclasses import replace
from typing import Any, Dict, List
from urllib.parse import urlparse

from .models import QuizSettings


class ConfigManager:
    """Manages quiz configuration settings."""

    # Default configuration values
    DEFAULT_QUESTIONS_URL = "http://localhost:8000/questions"
    DEFAULT_SECONDS_PER_QUESTION = 30
    DEFAULT_TICK_INTERVAL = 1.0
    DEFAULT_REQUEST_TIMEOUT = 10.0
    DEFAULT_TIMER_REFRESH_SECONDS = 5

    # Validation limits
    MIN_SECONDS_PER_QUESTION = 5
    MAX_SECONDS_PER_QUESTION = 300  # 5 minutes
    MIN_REQUEST_TIMEOUT = 0.5
    MAX_REQUEST_TIMEOUT = 120.0
    MIN_TIMER_REFRESH_SECONDS = 1
    MAX_TIMER_REFRESH_SECONDS = 60

    def __init__(self):
        """Initialize ConfigManager with default settings."""
        self.logger = logging.getLogger(__name__)
        self._settings = QuizSettings()

    def get_quiz_settings(self) -> QuizSettings:
        """
        Get current quiz settings.

        Returns:
            A copy of the current settings
        """
        return replace(self._settings)

    def _failure(self, error_msg: str, user_message: str) -> Dict[str, Any]:
        self.logger.error(error_msg)
        return {
            'success': False,
            'error': error_msg,
            'user_message': user_message
        }

    def _success(self, message: str, user_message: str) -> Dict[str, Any]:
        self.logger.info(message)
        return {
            'success': True,
            'message': message,
            'user_message': user_message
        }

    def set_questions_url(self, url: str) -> Dict[str, Any]:
        """
        Set the endpoint the questions are fetched from.

        Args:
            url: Absolute http(s) URL

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(url, str) or not url.strip():
            return self._failure(
                "Questions URL must be a non-empty string",
                "❌ Invalid input: Questions URL cannot be empty"
            )

        parsed = urlparse(url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return self._failure(
                f"Questions URL must be an absolute http(s) URL, got {url!r}",
                "❌ Invalid URL: use something like http://localhost:8000/questions"
            )

        self._settings.questions_url = url.strip()
        return self._success(
            f"Questions URL set to {self._settings.questions_url}",
            f"✅ Questions will be loaded from {self._settings.questions_url}"
        )

    def get_questions_url(self) -> str:
        return self._settings.questions_url

    def set_seconds_per_question(self, seconds: int) -> Dict[str, Any]:
        """
        Set the time budget per question with validation.

        Args:
            seconds: Seconds granted per question

        Returns:
            Dictionary with success status, error message, and user-friendly message
        """
        if not isinstance(seconds, int) or isinstance(seconds, bool):
            return self._failure(
                f"Seconds per question must be an integer, got {type(seconds).__name__}",
                f"❌ Invalid input: Expected a number, got {type(seconds).__name__}"
            )

        if seconds < self.MIN_SECONDS_PER_QUESTION:
            return self._failure(
                f"Seconds per question must be at least {self.MIN_SECONDS_PER_QUESTION}",
                f"❌ Too short: Minimum is {self.MIN_SECONDS_PER_QUESTION} seconds"
            )

        if seconds > self.MAX_SECONDS_PER_QUESTION:
            return self._failure(
                f"Seconds per question cannot exceed {self.MAX_SECONDS_PER_QUESTION}",
                f"❌ Too long: Maximum is {self.MAX_SECONDS_PER_QUESTION} seconds"
            )

        self._settings.seconds_per_question = seconds
        return self._success(
            f"Seconds per question set to {seconds}",
            f"✅ Each question adds {seconds} seconds to the quiz timer"
        )

    def get_seconds_per_question(self) -> int:
        return self._settings.seconds_per_question

    def set_tick_interval(self, interval: float) -> Dict[str, Any]:
        """Set the timer tick interval in seconds (shortened only for tests and demos)."""
        if not isinstance(interval, (int, float)) or isinstance(interval, bool) or interval <= 0:
            return self._failure(
                f"Tick interval must be a positive number, got {interval!r}",
                "❌ Invalid input: Tick interval must be a positive number of seconds"
            )

        self._settings.tick_interval = float(interval)
        return self._success(
            f"Tick interval set to {self._settings.tick_interval}",
            f"✅ Timer ticks every {self._settings.tick_interval} seconds"
        )

    def set_request_timeout(self, timeout: float) -> Dict[str, Any]:
        """Set the HTTP timeout used when loading questions."""
        if not isinstance(timeout, (int, float)) or isinstance(timeout, bool):
            return self._failure(
                f"Request timeout must be a number, got {type(timeout).__name__}",
                f"❌ Invalid input: Expected a number, got {type(timeout).__name__}"
            )

        if not self.MIN_REQUEST_TIMEOUT <= timeout <= self.MAX_REQUEST_TIMEOUT:
            return self._failure(
                f"Request timeout must be between {self.MIN_REQUEST_TIMEOUT} and {self.MAX_REQUEST_TIMEOUT}",
                f"❌ Timeout must be between {self.MIN_REQUEST_TIMEOUT} and {self.MAX_REQUEST_TIMEOUT} seconds"
            )

        self._settings.request_timeout = float(timeout)
        return self._success(
            f"Request timeout set to {self._settings.request_timeout}",
            f"✅ Question requests time out after {self._settings.request_timeout} seconds"
        )

    def set_timer_refresh_seconds(self, seconds: int) -> Dict[str, Any]:
        """Set how often the displayed countdown is refreshed."""
        if not isinstance(seconds, int) or isinstance(seconds, bool):
            return self._failure(
                f"Timer refresh must be an integer, got {type(seconds).__name__}",
                f"❌ Invalid input: Expected a number, got {type(seconds).__name__}"
            )

        if not self.MIN_TIMER_REFRESH_SECONDS <= seconds <= self.MAX_TIMER_REFRESH_SECONDS:
            return self._failure(
                f"Timer refresh must be between {self.MIN_TIMER_REFRESH_SECONDS} and {self.MAX_TIMER_REFRESH_SECONDS}",
                f"❌ Refresh must be between {self.MIN_TIMER_REFRESH_SECONDS} and {self.MAX_TIMER_REFRESH_SECONDS} seconds"
            )

        self._settings.timer_refresh_seconds = seconds
        return self._success(
            f"Timer refresh set to {seconds}",
            f"✅ The countdown display refreshes every {seconds} seconds"
        )

    def apply_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Apply the ``quiz`` section of a loaded config.json.

        Invalid values are logged and skipped so that defaults stay in effect.

        Args:
            config: Whole decoded configuration file

        Returns:
            List of error messages for settings that were rejected
        """
        quiz_config = (config or {}).get('quiz', {})
        setters = {
            'questions_url': self.set_questions_url,
            'seconds_per_question': self.set_seconds_per_question,
            'tick_interval': self.set_tick_interval,
            'request_timeout': self.set_request_timeout,
            'timer_refresh_seconds': self.set_timer_refresh_seconds,
        }

        errors = []
        for key, setter in setters.items():
            if key not in quiz_config:
                continue
            result = setter(quiz_config[key])
            if not result['success']:
                errors.append(f"{key}: {result['error']}")

        unknown = sorted(set(quiz_config) - set(setters))
        for key in unknown:
            self.logger.warning(f"Ignoring unknown quiz setting '{key}'")

        return errors

    def reset_to_defaults(self) -> None:
        """Reset all settings to their default values."""
        self._settings = QuizSettings(
            questions_url=self.DEFAULT_QUESTIONS_URL,
            seconds_per_question=self.DEFAULT_SECONDS_PER_QUESTION,
            tick_interval=self.DEFAULT_TICK_INTERVAL,
            request_timeout=self.DEFAULT_REQUEST_TIMEOUT,
            timer_refresh_seconds=self.DEFAULT_TIMER_REFRESH_SECONDS
        )
        self.logger.info("All settings reset to default values")

    def validate_settings(self) -> Dict[str, Any]:
        """
        Validate current settings and return validation results.

        Returns:
            Dictionary with validation results and any issues found
        """
        validation_result = {
            "valid": True,
            "issues": []
        }
        settings = self._settings

        parsed = urlparse(settings.questions_url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid questions URL: {settings.questions_url}")

        if not (self.MIN_SECONDS_PER_QUESTION <= settings.seconds_per_question <= self.MAX_SECONDS_PER_QUESTION):
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid seconds per question: {settings.seconds_per_question}"
            )

        if settings.tick_interval <= 0:
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid tick interval: {settings.tick_interval}")

        if not (self.MIN_REQUEST_TIMEOUT <= settings.request_timeout <= self.MAX_REQUEST_TIMEOUT):
            validation_result["valid"] = False
            validation_result["issues"].append(f"Invalid request timeout: {settings.request_timeout}")

        if not (self.MIN_TIMER_REFRESH_SECONDS <= settings.timer_refresh_seconds <= self.MAX_TIMER_REFRESH_SECONDS):
            validation_result["valid"] = False
            validation_result["issues"].append(
                f"Invalid timer refresh interval: {settings.timer_refresh_seconds}"
            )

        return validation_result

    def get_settings_summary(self) -> str:
        """
        Get a formatted summary of current settings.

        Returns:
            Human-readable string describing current settings
        """
        return (
            f"Quiz Settings:\n"
            f"• Questions URL: {self._settings.questions_url}\n"
            f"• Timer: {self._settings.seconds_per_question} seconds per question\n"
            f"• Request timeout: {self._settings.request_timeout} seconds\n"
            f"• Display refresh: every {self._settings.timer_refresh_seconds} seconds"
        )
