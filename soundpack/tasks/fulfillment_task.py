"""
Checkout Fulfillment Task

Thin Celery wrapper around FulfillmentService.handle_checkout.
"""

import logging

from celery_app import celery_app
from soundpack.config.celery_config import FULFILL_CHECKOUT_TASK

logger = logging.getLogger(__name__)


@celery_app.task(name=FULFILL_CHECKOUT_TASK, ignore_result=True)
def fulfill_checkout(email, session_id=None, paid=True):
    """Complete a checkout and send the welcome mail."""
    from celery_app import flask_app
    from soundpack.application.fulfillment_service import FulfillmentService

    fulfillment = flask_app.container.resolve(FulfillmentService)
    sent = fulfillment.handle_checkout(email, session_id=session_id, paid=paid)
    logger.info(f"Checkout {session_id or '-'} fulfilled (mail sent: {sent})")
    return sent
