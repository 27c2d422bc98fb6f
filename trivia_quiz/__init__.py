"""Timed trivia quiz: pure state machine core with a Discord front-end."""
