"""Watcher: one poll cycle per subscriber and tier.

A cycle fetches the tier's days, diffs every observed task against the stored
snapshot, drops self-originated changes, dispatches the rest and writes the merged
snapshot set back. Errors abort only the current subscriber/tier cycle.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import NamedTuple

import httpx
from pydantic import BaseModel

from src.core.clock import Clock, SystemClock, isoformat_utc
from src.core.config import WebhookConfig, mask_key
from src.core.errors import classify_cycle_error
from src.core.logging import log_with_subscriber_context, span
from src.core.store import KeyValueStore
from src.domain.events import WebhookEventData
from src.domain.scope import PollTier
from src.domain.task import Task
from src.interface.webhook_dispatcher import create_webhook_payload, dispatch_webhook
from src.services.change_detector import detect_change
from src.services.scope_service import days_for_tier, includes_backlog
from src.services.self_origin_service import consume_self_origin
from src.services.snapshot_service import build_snapshot
from src.services.state_service import load_state, merge_snapshots, save_state
from src.services.task_source import TaskSource, fetch_current_tasks


logger = logging.getLogger(__name__)


class Subscriber(NamedTuple):
    """A subscriber key and the task source authenticated for it."""

    api_key: str
    source: TaskSource


class PollOutcome(BaseModel):
    """Summary of one subscriber/tier poll cycle."""

    subscriber: str
    tier: PollTier
    observed: int = 0
    baseline: bool = False
    delivered: int = 0
    suppressed: int = 0
    failed_deliveries: int = 0
    error: str | None = None


class Watcher:
    """Runs poll cycles against a state store and delivers the resulting webhooks."""

    def __init__(
        self,
        *,
        store: KeyValueStore,
        config: WebhookConfig,
        clock: Clock | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._store = store
        self._config = config
        self._clock = clock or SystemClock()
        self._http_client = http_client
        # Serializes the load-to-save section of cycles for the same subscriber across tiers
        self._state_locks: dict[str, asyncio.Lock] = {}

    @property
    def config(self) -> WebhookConfig:
        return self._config

    async def poll_tier(self, tier: PollTier, subscribers: Sequence[Subscriber]) -> list[PollOutcome]:
        """Poll one tier for every subscriber, one after another."""
        return [await self.poll_subscriber(subscriber, tier) for subscriber in subscribers]

    async def poll_subscriber(self, subscriber: Subscriber, tier: PollTier) -> PollOutcome:
        """Run one cycle; never raises.

        Any fetch or store failure is logged and reported on the outcome, and the
        stored state is left as it was.
        """
        with span("watcher.poll", tier=tier.value, subscriber=mask_key(subscriber.api_key)):
            try:
                return await self._run_cycle(subscriber, tier)
            except Exception as e:
                category = classify_cycle_error(e)
                log_with_subscriber_context(
                    logger,
                    "error",
                    f"Webhook watcher error ({tier.value}): {e}",
                    subscriber=subscriber.api_key,
                    tier=tier.value,
                    error_category=category.value,
                )
                return PollOutcome(subscriber=mask_key(subscriber.api_key), tier=tier, error=str(e))

    async def _run_cycle(self, subscriber: Subscriber, tier: PollTier) -> PollOutcome:
        api_key = subscriber.api_key
        days = days_for_tier(tier, self._clock.today(), self._config)
        current_tasks = await fetch_current_tasks(subscriber.source, days, include_backlog=includes_backlog(tier))

        # State is loaded after fetching, under the lock, so a slow fetch never diffs against stale state
        async with self._state_lock(api_key):
            return await self._apply_observations(api_key, tier, current_tasks)

    def _state_lock(self, api_key: str) -> asyncio.Lock:
        return self._state_locks.setdefault(api_key, asyncio.Lock())

    async def _apply_observations(self, api_key: str, tier: PollTier, current_tasks: dict[str, Task]) -> PollOutcome:
        state = await load_state(self._store, api_key)
        now = self._clock.now()
        snapshots = {task_id: build_snapshot(task, now) for task_id, task in current_tasks.items()}
        outcome = PollOutcome(subscriber=mask_key(api_key), tier=tier, observed=len(current_tasks))

        if not state.tasks:
            await save_state(self._store, api_key, merge_snapshots(state, snapshots, last_poll=isoformat_utc(now)))
            log_with_subscriber_context(
                logger,
                "info",
                f"First poll ({tier.value}) - storing baseline ({len(snapshots)} tasks)",
                subscriber=api_key,
                tier=tier.value,
            )
            outcome.baseline = True
            return outcome

        for task_id, task in current_tasks.items():
            previous = state.tasks.get(task_id)
            if previous is None:
                # Unseen tasks may simply have entered the polled window; no created event
                continue

            change = detect_change(previous, snapshots[task_id])
            if change is None:
                continue

            origin = await consume_self_origin(self._store, subscriber=api_key, task_id=task_id)
            if origin is not None:
                logger.debug(
                    "Skipping webhook for %s on task %s (self-originated %s)",
                    change.event.value,
                    task_id,
                    origin,
                )
                outcome.suppressed += 1
                continue

            payload = create_webhook_payload(
                change.event,
                api_key,
                WebhookEventData(task=task, previous_task=previous, changes=change.changes),
                now,
            )
            result = await dispatch_webhook(self._config, payload, client=self._http_client)
            if result.success:
                outcome.delivered += 1
            else:
                outcome.failed_deliveries += 1

        # Deletions are never inferred from absence: the task may live in another tier's days
        await save_state(self._store, api_key, merge_snapshots(state, snapshots, last_poll=isoformat_utc(now)))
        return outcome
