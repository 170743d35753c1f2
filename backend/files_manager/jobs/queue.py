"""Job queue: producers enqueue named jobs, workers register async handlers per job type."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

from celery import Celery

from files_manager.jobs.celery_app import JOB_TYPES, celery_app, task_name
from files_manager.jobs.dlq import DeadLetterTask

log = logging.getLogger(__name__)

Payload = Dict[str, Any]
Handler = Callable[[Payload], Awaitable[None]]


class JobQueue:
    """Durable at-least-once queue on top of a Celery app."""

    def __init__(self, app: Celery) -> None:
        self.app = app

    async def enqueue(self, job_type: str, payload: Payload) -> None:
        """Hand the job to the broker; returns once accepted, not once processed."""
        if job_type not in JOB_TYPES:
            raise ValueError(f"Unknown job type: {job_type}")
        # send_task does blocking broker I/O
        await asyncio.to_thread(self.app.send_task, task_name(job_type), args=[payload])
        log.info("Enqueued %s job %s", job_type, payload)

    def process(self, job_type: str, handler: Handler):
        """Register handler as the consumer of job_type. Returns the Celery task."""

        @self.app.task(name=task_name(job_type), base=DeadLetterTask, bind=True)
        def run(task, payload: Payload) -> None:
            log.info("Processing %s job id=%s attempt=%d", job_type, task.request.id, task.request.retries + 1)
            asyncio.run(handler(payload))
            log.info("Finished %s job id=%s", job_type, task.request.id)

        return run


_job_queue = JobQueue(celery_app)


def get_job_queue() -> JobQueue:
    """FastAPI dependency: the process-wide job queue."""
    return _job_queue
