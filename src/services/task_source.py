"""Task source capability and rate-limited multi-day fetching."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from src.core.config import Constants
from src.core.errors import FetchError
from src.domain.task import Task


logger = logging.getLogger(__name__)


class TaskSource(Protocol):
    """Read-only view of the remote task service for one subscriber."""

    async def list_tasks_for_day(self, day: str) -> list[Task]: ...

    async def list_backlog_tasks(self) -> list[Task]: ...


async def fetch_tasks_with_rate_limit(
    source: TaskSource,
    days: Sequence[str],
    *,
    batch_size: int = Constants.FETCH_BATCH_SIZE,
    delay_seconds: float = Constants.FETCH_BATCH_DELAY_SECONDS,
) -> list[Task]:
    """Fetch tasks for several days in concurrent batches with a pause between batches.

    Args:
        source: Task source to query
        days: ISO dates to fetch
        batch_size: Days fetched concurrently per batch
        delay_seconds: Pause between batches (not after the last one)

    Returns:
        All tasks in day order

    Raises:
        FetchError: If any day fails to load
    """
    tasks: list[Task] = []

    for start in range(0, len(days), batch_size):
        batch = days[start : start + batch_size]
        try:
            results = await asyncio.gather(*(source.list_tasks_for_day(day) for day in batch))
        except Exception as e:
            raise FetchError(f"Failed to fetch tasks for {batch[0]}..{batch[-1]}: {e}") from e

        for day_tasks in results:
            tasks.extend(day_tasks)

        if start + batch_size < len(days):
            await asyncio.sleep(delay_seconds)

    return tasks


async def fetch_backlog(source: TaskSource) -> list[Task]:
    """Fetch backlog tasks.

    Raises:
        FetchError: If the backlog fails to load
    """
    try:
        return await source.list_backlog_tasks()
    except Exception as e:
        raise FetchError(f"Failed to fetch backlog: {e}") from e


async def fetch_current_tasks(source: TaskSource, days: Sequence[str], *, include_backlog: bool) -> dict[str, Task]:
    """Fetch the backlog (optionally) and all days concurrently and index them by task ID.

    Raises:
        FetchError: If any fetch fails
    """

    async def _no_tasks() -> list[Task]:
        return []

    backlog_tasks, day_tasks = await asyncio.gather(
        fetch_backlog(source) if include_backlog else _no_tasks(),
        fetch_tasks_with_rate_limit(source, days) if days else _no_tasks(),
    )
    return {task.id: task for task in [*backlog_tasks, *day_tasks]}
