"""Celery application used by the API (producer) and the workers (consumer)."""

from celery import Celery

from files_manager.config import get_settings

# Job types; each has its own queue so workers can be scaled per type
JOB_THUMBNAIL = "thumbnail"
JOB_WELCOME = "welcome"
JOB_TYPES = (JOB_THUMBNAIL, JOB_WELCOME)


def task_name(job_type: str) -> str:
    return f"files_manager.jobs.{job_type}"


_settings = get_settings()

celery_app = Celery("files_manager", broker=_settings.broker_url)

celery_app.conf.update(
    enable_utc=True,
    timezone="UTC",
    broker_connection_retry_on_startup=True,
    # At-least-once: ack after the handler returns, requeue if the worker dies mid-job
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    # No result backend: producers never wait on jobs
    task_ignore_result=True,
    task_serializer="json",
    accept_content=["json"],
    task_routes={task_name(t): {"queue": t} for t in JOB_TYPES},
)
