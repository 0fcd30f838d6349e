"""Calendar day sets polled by each tier."""

from datetime import date, timedelta

from src.core.config import WebhookConfig
from src.domain.scope import PollTier


DAYS_PER_WEEK = 7


def week_monday(day: date) -> date:
    """Return the Monday of the week containing ``day`` (a Sunday is 6 days past its Monday)."""
    return day - timedelta(days=day.weekday())


def week_days(monday: date) -> list[date]:
    """Return the seven days of the week starting at ``monday``."""
    return [monday + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]


def _past_days(this_monday: date, weeks: int, extra_days: int) -> list[date]:
    days: list[date] = []
    for week in range(1, weeks + 1):
        days.extend(week_days(this_monday - timedelta(weeks=week)))

    earliest_monday = this_monday - timedelta(weeks=weeks)
    days.extend(earliest_monday - timedelta(days=offset) for offset in range(1, extra_days + 1))
    return days


def _future_days(this_monday: date, weeks: int, extra_days: int) -> list[date]:
    days: list[date] = []
    for week in range(1, weeks + 1):
        days.extend(week_days(this_monday + timedelta(weeks=week)))

    latest_sunday = this_monday + timedelta(weeks=weeks, days=DAYS_PER_WEEK - 1)
    days.extend(latest_sunday + timedelta(days=offset) for offset in range(1, extra_days + 1))
    return days


def days_for_tier(tier: PollTier, today: date, config: WebhookConfig) -> list[str]:
    """Compute the ISO dates a tier must re-fetch.

    Week boundaries are derived from ``today`` on every call so a long-running
    process rolls over to the new week without a restart.

    Args:
        tier: Polling tier
        today: Current calendar date (from the injected clock)
        config: Webhook configuration carrying the past/future week and extra-day counts

    Returns:
        List of dates formatted as YYYY-MM-DD
    """
    this_monday = week_monday(today)

    if tier is PollTier.TODAY:
        days = [today]
    elif tier is PollTier.WEEK:
        days = [day for day in week_days(this_monday) if day != today]
    elif tier is PollTier.PAST:
        days = _past_days(this_monday, config.poll_weeks_past, config.poll_extra_days_past)
    else:
        days = _future_days(this_monday, config.poll_weeks_ahead, config.poll_extra_days_ahead)

    return [day.isoformat() for day in days]


def includes_backlog(tier: PollTier) -> bool:
    """Backlog membership is only observable through the today tier."""
    return tier is PollTier.TODAY
