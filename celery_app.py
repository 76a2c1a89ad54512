"""
Celery Application Instance

Creates the Celery app instance for workers. Uses the app factory so tasks
resolve the same services as the web process.

    celery -A celery_app.celery_app worker -Q events
"""

from app_factory import create_app

flask_app = create_app()

celery_app = flask_app.celery
if celery_app is None:
    raise RuntimeError("CELERY_BROKER_URL must be set to run a Celery worker")

# Task modules import celery_app, so they are registered by name and loaded
# by the worker after this module has finished initializing.
celery_app.conf.imports = (
    "soundpack.tasks.audit_task",
    "soundpack.tasks.fulfillment_task",
)
