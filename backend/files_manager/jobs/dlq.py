"""
Dead-letter handling for jobs.

Jobs that fail permanently, or exhaust their retries, are pushed to the Redis
list ``dead_jobs`` and logged at ERROR so an operator can inspect and replay
them. Nothing is dropped silently.
"""

import json
import logging
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict, List, Optional

import redis
from celery import Task

from files_manager.config import get_settings

log = logging.getLogger(__name__)

DEAD_JOBS_KEY = "dead_jobs"

_settings = get_settings()


class PermanentJobError(Exception):
    """Retrying cannot help (bad payload, inconsistent data)."""


@lru_cache(maxsize=1)
def _redis_client() -> redis.Redis:
    """One client (and connection pool) per worker process."""
    return redis.Redis.from_url(get_settings().redis_url, decode_responses=True)


class DeadLetterTask(Task):
    """Base task: retry with backoff on any error except PermanentJobError, then dead-letter."""

    autoretry_for = (Exception,)
    dont_autoretry_for = (PermanentJobError,)
    retry_kwargs = {"max_retries": _settings.job_max_retries}
    retry_backoff = _settings.job_retry_backoff
    retry_backoff_max = _settings.job_retry_backoff_max
    retry_jitter = True

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        """Called once the task has failed for good (permanent error or retries exhausted)."""
        self._send_to_dlq(exc, task_id, args, kwargs)
        super().on_failure(exc, task_id, args, kwargs, einfo)

    def _send_to_dlq(self, exc, task_id, args, kwargs) -> None:
        message = {
            "task_id": task_id,
            "task_name": self.name,
            "args": list(args or []),
            "kwargs": dict(kwargs or {}),
            "failed_at": datetime.now(timezone.utc).isoformat(),
            "retries": self.request.retries,
            "permanent": isinstance(exc, PermanentJobError),
            "exception": {"type": type(exc).__name__, "message": str(exc)},
        }
        log.error(
            "Job %s (%s) dead-lettered after %d retries: %s: %s",
            task_id,
            self.name,
            self.request.retries,
            type(exc).__name__,
            exc,
        )
        try:
            _redis_client().rpush(DEAD_JOBS_KEY, json.dumps(message))
        except redis.RedisError as dlq_error:
            # The ERROR log above is the remaining record; raising here would loop the failure
            log.critical("Failed to store dead job %s: %s", task_id, dlq_error)


def list_dead_jobs(client: Optional[redis.Redis] = None) -> List[Dict[str, Any]]:
    """Dead-lettered jobs, oldest first."""
    client = client or _redis_client()
    return [json.loads(raw) for raw in client.lrange(DEAD_JOBS_KEY, 0, -1)]
