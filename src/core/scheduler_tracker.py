"""Run tracking and health status for the watcher's tier jobs."""

import logging
from datetime import UTC, datetime
from typing import Any


logger = logging.getLogger(__name__)


class JobTracker:
    """Track tier job execution history and health status (in-process)."""

    def __init__(self) -> None:
        """Initialize job tracker."""
        self._storage: dict[str, dict[str, Any]] = {}

    def _job(self, job_name: str) -> dict[str, Any]:
        return self._storage.setdefault(job_name, {})

    def record_job_start(self, job_name: str) -> None:
        """Record job execution start.

        Args:
            job_name: Name of the tier job
        """
        self._job(job_name)["current_run"] = datetime.now(UTC).isoformat()

    def record_job_success(self, job_name: str) -> None:
        """Record a run in which every subscriber cycle completed.

        Args:
            job_name: Name of the tier job
        """
        job = self._job(job_name)
        job["last_success"] = datetime.now(UTC).isoformat()
        job["consecutive_failures"] = 0
        job["success_count"] = job.get("success_count", 0) + 1
        job.pop("current_run", None)

    def record_job_failure(self, job_name: str, error: str) -> int:
        """Record a run in which at least one subscriber cycle aborted.

        Args:
            job_name: Name of the tier job
            error: Error message

        Returns:
            Number of consecutive failed runs
        """
        job = self._job(job_name)
        job["last_failure"] = datetime.now(UTC).isoformat()
        job["last_error"] = error[:500]  # Truncate long errors
        job["consecutive_failures"] = job.get("consecutive_failures", 0) + 1
        job["failure_count"] = job.get("failure_count", 0) + 1
        job.pop("current_run", None)
        return job["consecutive_failures"]

    def get_job_status(self, job_name: str) -> dict[str, Any]:
        """Get job execution status.

        Args:
            job_name: Name of the tier job

        Returns:
            Dict with job status information
        """
        job_data = self._storage.get(job_name, {})
        return {
            "job_name": job_name,
            "last_success": job_data.get("last_success"),
            "last_failure": job_data.get("last_failure"),
            "last_error": job_data.get("last_error"),
            "consecutive_failures": job_data.get("consecutive_failures", 0),
            "success_count": job_data.get("success_count", 0),
            "failure_count": job_data.get("failure_count", 0),
            "currently_running": "current_run" in job_data,
            "current_run_started": job_data.get("current_run"),
        }
