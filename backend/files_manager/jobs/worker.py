"""
Worker entry point:

    celery -A files_manager.jobs.worker worker -Q thumbnail,welcome
"""

from files_manager.jobs.celery_app import JOB_THUMBNAIL, JOB_WELCOME, celery_app
from files_manager.jobs.queue import JobQueue
from files_manager.jobs.thumbnails import process_thumbnail_job
from files_manager.jobs.welcome import process_welcome_job
from files_manager.logging_config import setup_logging

setup_logging()

app = celery_app
job_queue = JobQueue(celery_app)

thumbnail_task = job_queue.process(JOB_THUMBNAIL, process_thumbnail_job)
welcome_task = job_queue.process(JOB_WELCOME, process_welcome_job)
