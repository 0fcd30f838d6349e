"""Clock abstraction so scope windows and timestamps can be computed without real time passing."""

from datetime import UTC, date, datetime
from typing import Protocol


class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime: ...

    def today(self) -> date: ...


class SystemClock:
    """Wall clock.

    ``today`` uses the local calendar date since scheduled days are calendar days of
    the process' timezone; ``now`` is timezone-aware UTC for emitted timestamps.
    """

    def now(self) -> datetime:
        return datetime.now(UTC)

    def today(self) -> date:
        return date.today()  # noqa: DTZ011


class FixedClock:
    """Clock frozen at ``current``. Move time by reassigning it."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()


def isoformat_utc(moment: datetime) -> str:
    """Format a datetime as ISO-8601 with a ``Z`` suffix and millisecond precision."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
