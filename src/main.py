"""taskhook - signed webhooks for a task service that only supports polling."""

import logging
import sys
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from src.core.config import Settings, settings, validate_webhook_settings
from src.core.errors import ConfigError
from src.core.logging import configure_logfire, instrument_fastapi
from src.core.memory_store import InMemoryStore
from src.core.redis_client import RedisClient
from src.core.scheduler import WatcherScheduler
from src.core.store import KeyValueStore
from src.services.watcher_service import Subscriber, Watcher


logger = logging.getLogger(__name__)


def create_store(app_settings: Settings) -> KeyValueStore:
    """Open the configured state store.

    Raises:
        ConfigError: If the Redis backend is selected without coordinates
    """
    if app_settings.state_backend == "memory":
        logger.info("startup_validation", extra={"service": "state_store", "backend": "memory"})
        return InMemoryStore()
    return RedisClient.from_settings(app_settings)


async def check_store_connectivity(store: KeyValueStore) -> None:
    """Verify the state store answers.

    Raises:
        ConnectionError: If the store does not respond to a ping
    """
    if await store.ping():
        logger.info("startup_validation", extra={"service": "state_store", "status": "ok"})
        return
    logger.error("startup_validation", extra={"service": "state_store", "status": "failed"})
    raise ConnectionError("State store is unreachable")


async def validate_startup_configuration(app_settings: Settings) -> KeyValueStore | None:
    """Validate webhook configuration and open the state store.

    Exits the process on configuration errors; they are fatal at startup only.

    Returns:
        The opened store, or None when webhooks are disabled
    """
    logger.info("startup_validation_begin")

    try:
        validate_webhook_settings(app_settings)
        if not app_settings.webhook_enabled:
            logger.info("startup_validation", extra={"service": "webhooks", "status": "disabled"})
            return None

        store = create_store(app_settings)
        await check_store_connectivity(store)
        logger.info("startup_validation_complete", extra={"status": "ok"})
        return store

    except (ConfigError, ConnectionError) as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\n❌ Startup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)


def create_app(subscribers: Sequence[Subscriber] = (), app_settings: Settings | None = None) -> FastAPI:
    """Build the host application.

    Args:
        subscribers: Subscriber keys paired with their authenticated task sources
        app_settings: Settings to use (defaults to the environment)
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Application lifespan context manager."""
        # Configure logging first so validation logs are captured
        configure_logfire()

        store = await validate_startup_configuration(app_settings)
        watcher_scheduler: WatcherScheduler | None = None
        if store is not None:
            watcher = Watcher(store=store, config=app_settings.webhook_config())
            watcher_scheduler = WatcherScheduler(watcher, subscribers)
            watcher_scheduler.start()
        app.state.watcher_scheduler = watcher_scheduler
        app.state.store = store
        yield
        # Shutdown
        if watcher_scheduler is not None:
            watcher_scheduler.stop()
        if store is not None:
            await store.close()

    app = FastAPI(
        title="taskhook",
        description="Change detection and signed webhook delivery for a polled task service",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.watcher_scheduler = None
    app.state.store = None

    # Instrument FastAPI with Logfire
    instrument_fastapi(app)

    @app.get("/health")
    async def health_check() -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse(content={"status": "healthy"}, status_code=200)

    @app.get("/health/watcher")
    async def watcher_health_check() -> JSONResponse:
        """Watcher health check endpoint with per-tier run statuses."""
        watcher_scheduler: WatcherScheduler | None = app.state.watcher_scheduler
        if watcher_scheduler is None:
            return JSONResponse(content={"status": "disabled"}, status_code=200)

        status = watcher_scheduler.get_health_status()
        tiers = status["tiers"]
        has_failures = any(tier["consecutive_failures"] > 0 for tier in tiers.values())  # type: ignore[union-attr]
        overall_status = "degraded" if has_failures else "healthy"
        if not status["running"]:
            overall_status = "stopped"

        store = app.state.store
        return JSONResponse(
            content={
                "status": overall_status,
                **status,
                "store": store.get_health_status() if hasattr(store, "get_health_status") else None,
            },
            status_code=200 if overall_status == "healthy" else 503,
        )

    return app


app = create_app()
