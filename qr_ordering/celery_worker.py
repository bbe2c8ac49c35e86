"""
Celery Worker Configuration
Sets up Celery with Redis as message broker and result backend.

Run with:
    celery -A qr_ordering.celery_worker worker --loglevel=info
"""

from celery import Celery

from qr_ordering.core.config import get_settings

REDIS_URL = get_settings().redis_url

celery_app = Celery(
    "qr_ordering_worker",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=["qr_ordering.tasks"],
)

celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=4,

    # Results expire after 1 hour
    result_expires=3600,

    # Ledger rows must not be lost if a worker dies mid-export
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,
)


if __name__ == "__main__":
    celery_app.start()
