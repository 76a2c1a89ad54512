"""
Celery Configuration

Broker settings, the events queue and the Flask-aware task base used by
the download audit and checkout fulfillment tasks.
"""

import os

from celery import Celery
from kombu import Queue

RECORD_DOWNLOAD_TASK = "soundpack.tasks.record_download"
FULFILL_CHECKOUT_TASK = "soundpack.tasks.fulfill_checkout"
EVENTS_QUEUE = "events"


class CeleryConfig:
    """Settings applied with config_from_object."""

    # Serialization; task kwargs are plain JSON
    task_serializer = "json"
    accept_content = ["json"]
    result_serializer = "json"
    timezone = "UTC"
    enable_utc = True
    task_ignore_result = True

    # One task at a time per worker process, acked after it ran
    worker_prefetch_multiplier = 1
    task_acks_late = True
    worker_max_tasks_per_child = 200

    # Side-effect tasks share the events queue
    task_routes = {
        RECORD_DOWNLOAD_TASK: {"queue": EVENTS_QUEUE},
        FULFILL_CHECKOUT_TASK: {"queue": EVENTS_QUEUE},
    }

    task_default_queue = "default"
    task_queues = (
        Queue("default", routing_key="default"),
        Queue(EVENTS_QUEUE, routing_key="events"),
    )

    # Mail sends and storage lookups are short
    task_soft_time_limit = int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", 120))
    task_time_limit = int(os.getenv("CELERY_TASK_TIME_LIMIT", 180))

    # Publishing must not hang a request when the broker is down
    broker_connection_timeout = 3
    broker_transport_options = {"max_retries": 1}

    worker_concurrency = int(os.getenv("CELERY_WORKER_CONCURRENCY", 2))


def make_celery(app, broker_url: str, result_backend: str = None) -> Celery:
    """
    Build the Celery app bound to a Flask application.

    Args:
        app: Flask application whose context wraps every task run
        broker_url: Broker connection URL
        result_backend: Result backend URL, defaults to the broker

    Returns:
        Celery instance with CeleryConfig applied
    """
    celery = Celery(
        app.import_name,
        backend=result_backend or broker_url,
        broker=broker_url,
    )

    celery.config_from_object(CeleryConfig)

    class ContextTask(celery.Task):
        """Runs each task inside the Flask application context."""

        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery
