"""
Celery workers module.

Periodic embedding retry sweep plus the in-process runner used for
fire-and-forget vector sync.

Dependencies: celery, notegraph.configs, notegraph.observability
System role: Background task processing
"""

from celery import Celery
from celery.signals import setup_logging

from notegraph.configs import get_settings
from notegraph.observability.logger import configure_logging

settings = get_settings()
celery_config = settings.celery

celery_app = Celery(
    "notegraph",
    broker=celery_config.broker_url,
    backend=celery_config.result_backend_url,
    include=["notegraph.workers.tasks.embedding_retry"],
)

celery_app.conf.update(
    task_serializer=celery_config.task_serializer,
    result_serializer=celery_config.result_serializer,
    accept_content=celery_config.accept_content,
    timezone=celery_config.timezone,
    beat_schedule={
        "process-embedding-retries": {
            "task": "notegraph.workers.tasks.embedding_retry.process_embedding_retries",
            "schedule": float(settings.retry.sweep_interval_seconds),
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    """Replace Celery's logging setup with the application format."""
    configure_logging(settings.log_level)
