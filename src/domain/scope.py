"""Polling tier definitions."""

from enum import StrEnum


class PollTier(StrEnum):
    """Independent polling schedules, each with its own period and day set."""

    TODAY = "today"  # Today + backlog
    WEEK = "week"  # Rest of the current Monday-Sunday week
    PAST = "past"  # Prior full weeks + extra days
    FUTURE = "future"  # Following full weeks + extra days
