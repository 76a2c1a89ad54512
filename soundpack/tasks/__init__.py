"""
Celery Tasks

Task modules are listed in celery_app.conf.imports and loaded by the worker,
not imported here, because each one imports the worker's celery_app.
"""
