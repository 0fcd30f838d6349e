"""Tiered polling scheduler for the webhook watcher."""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.core.config import Constants, WebhookConfig
from src.core.scheduler_tracker import JobTracker
from src.domain.scope import PollTier
from src.services.watcher_service import PollOutcome, Subscriber, Watcher


logger = logging.getLogger(__name__)


def tier_interval_seconds(tier: PollTier, config: WebhookConfig) -> int:
    """Polling period of a tier."""
    return {
        PollTier.TODAY: config.poll_interval,
        PollTier.WEEK: config.poll_interval_week,
        PollTier.PAST: config.poll_interval_past,
        PollTier.FUTURE: config.poll_interval_future,
    }[tier]


def tier_job_id(tier: PollTier) -> str:
    return f"watcher_poll_{tier.value}"


class WatcherScheduler:
    """Owns the four tier timers and their lifecycle.

    Each tier is an independent APScheduler interval job; a tier whose previous run is
    still in flight skips the tick, while different tiers overlap freely. Every tier
    job first fires shortly after start, then on its interval.
    """

    def __init__(
        self,
        watcher: Watcher,
        subscribers: Sequence[Subscriber],
        *,
        tracker: JobTracker | None = None,
        initial_delay_seconds: float = Constants.INITIAL_POLL_DELAY_SECONDS,
    ) -> None:
        self._watcher = watcher
        self._subscribers = list(subscribers)
        self._tracker = tracker or JobTracker()
        self._initial_delay_seconds = initial_delay_seconds
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    @property
    def tracker(self) -> JobTracker:
        return self._tracker

    def start(self) -> bool:
        """Register the tier jobs and start polling.

        Must be called from within a running event loop.

        Returns:
            True if the watcher started, False if it was already running or has no subscribers
        """
        if self._scheduler is not None:
            logger.warning("Webhook watcher already running")
            return False

        if not self._subscribers:
            logger.warning("No subscribers configured for webhook watcher")
            return False

        config = self._watcher.config
        total_weeks = 1 + config.poll_weeks_past + config.poll_weeks_ahead
        extra_days = config.poll_extra_days_past + config.poll_extra_days_ahead
        logger.info(
            "Starting webhook watcher (%d subscribers, %d weeks + %d extra days)",
            len(self._subscribers),
            total_weeks,
            extra_days,
        )

        scheduler = AsyncIOScheduler(timezone=UTC)
        first_run = datetime.now(UTC) + timedelta(seconds=self._initial_delay_seconds)
        for tier in PollTier:
            interval = tier_interval_seconds(tier, config)
            scheduler.add_job(
                self.run_tier,
                trigger=IntervalTrigger(seconds=interval),
                args=[tier],
                id=tier_job_id(tier),
                name=f"Poll {tier.value} tier",
                next_run_time=first_run,
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
            logger.info("Scheduled %s poll: every %ds", tier.value, interval)

        scheduler.start()
        self._scheduler = scheduler
        logger.info("Webhook watcher started")
        return True

    def stop(self) -> bool:
        """Stop all tier timers without waiting for in-flight cycles.

        Returns:
            True if the watcher was running and is now stopped
        """
        if self._scheduler is None:
            return False

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        logger.info("Webhook watcher stopped")
        return True

    async def run_tier(self, tier: PollTier) -> list[PollOutcome]:
        """Poll one tier for all subscribers and record the run."""
        job_name = tier.value
        self._tracker.record_job_start(job_name)

        outcomes = await self._watcher.poll_tier(tier, self._subscribers)

        errors = [outcome.error for outcome in outcomes if outcome.error]
        if errors:
            consecutive = self._tracker.record_job_failure(job_name, "; ".join(errors))
            logger.warning(
                "%s poll finished with %d failed cycle(s)",
                tier.value,
                len(errors),
                extra={"tier": tier.value, "consecutive_failures": consecutive},
            )
        else:
            self._tracker.record_job_success(job_name)
        return outcomes

    def get_health_status(self) -> dict[str, object]:
        """Per-tier run status for the health endpoint."""
        return {
            "running": self.is_running,
            "subscribers": len(self._subscribers),
            "tiers": {tier.value: self._tracker.get_job_status(tier.value) for tier in PollTier},
        }
