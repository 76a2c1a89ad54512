"""
Download Audit Task

Thin Celery wrapper around AuditService.record_download.
"""

import logging

from celery_app import celery_app
from soundpack.config.celery_config import RECORD_DOWNLOAD_TASK

logger = logging.getLogger(__name__)


@celery_app.task(name=RECORD_DOWNLOAD_TASK, ignore_result=True)
def record_download(email=None, token="", ip_address=None, user_agent=None):
    """
    Record a download event.

    Services are resolved from the application's DependencyContainer; the
    task never touches infrastructure directly.
    """
    from celery_app import flask_app
    from soundpack.application.audit_service import AuditService

    audit_service = flask_app.container.resolve(AuditService)
    recorded = audit_service.record_download(email, token, ip_address, user_agent)
    if not recorded:
        logger.warning(f"Download audit not recorded for token {token[:8]}...")
    return recorded
