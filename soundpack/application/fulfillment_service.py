"""
Fulfillment Service

Completes a checkout: marks the subscription record completed and sends the
welcome mail carrying the download link.
"""

import html
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from soundpack.application.event_publisher import EventPublisher
from soundpack.domain.asset_storage import DownloadLinkResolver
from soundpack.domain.errors import MailDeliveryError
from soundpack.domain.events import WelcomeEmailFailedEvent, WelcomeEmailSentEvent
from soundpack.domain.notifications import IMailTransport, OutboundMessage
from soundpack.domain.subscriptions import STATUS_COMPLETED, STATUS_PENDING, ISubscriptionRepository

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Your Tesla Lock Sound Pack"

DEFAULT_WELCOME_HTML = (
    "<p>Thanks for your purchase!</p>"
    '<p><a href="{{download_url}}">Download your sound pack</a></p>'
    "<p>The link is personal to {{email}} and expires after a while. "
    "Reply to this mail if it stops working.</p>"
)

DEFAULT_WELCOME_TEXT = (
    "Thanks for your purchase!\n\n"
    "Download your sound pack: {{download_url}}\n\n"
    "The link is personal to {{email}} and expires after a while."
)


def render_template(template: str, download_url: str, email: str, escape: bool = True) -> str:
    """Replace {{download_url}} and {{email}} placeholders."""
    if escape:
        download_url, email = html.escape(download_url), html.escape(email)
    return template.replace("{{download_url}}", download_url).replace("{{email}}", email)


class FulfillmentService:
    """Handles the checkout-completed event from the payment provider."""

    def __init__(
        self,
        repository: ISubscriptionRepository,
        mailer: IMailTransport,
        link_resolver: DownloadLinkResolver,
        event_publisher: EventPublisher,
        template_path: Optional[str] = None,
        download_ttl_ms: Optional[int] = None,
    ):
        self.repository = repository
        self.mailer = mailer
        self.link_resolver = link_resolver
        self.event_publisher = event_publisher
        self.template_path = template_path
        self.download_ttl_ms = download_ttl_ms

    def _load_template(self) -> str:
        if self.template_path:
            try:
                return Path(self.template_path).read_text(encoding="utf-8")
            except OSError as e:
                logger.warning(f"Mail template {self.template_path} unreadable, using default: {e}")
        return DEFAULT_WELCOME_HTML

    def build_welcome_message(self, email: str, download_url: str) -> OutboundMessage:
        return OutboundMessage(
            to=email,
            subject=WELCOME_SUBJECT,
            html=render_template(self._load_template(), download_url, email),
            text=render_template(DEFAULT_WELCOME_TEXT, download_url, email, escape=False),
        )

    def _upsert_record(self, email: str, session_id: Optional[str], paid: bool) -> Optional[dict]:
        status = STATUS_COMPLETED if paid else STATUS_PENDING
        record = None
        if session_id:
            record = self.repository.find_by_key("stripe_session_id", session_id)

        if record is not None:
            return self.repository.update_record(
                record["id"], {"status": status, "email_sent": False, "email": email}
            ) or record

        return self.repository.create_record({
            "email": email,
            "stripe_session_id": session_id,
            "status": status,
            "email_sent": False,
        })

    def handle_checkout(self, email: str, session_id: Optional[str] = None, paid: bool = True) -> bool:
        """
        Complete a checkout. Never raises.

        Args:
            email: Buyer email
            session_id: Checkout session id
            paid: Whether payment succeeded; unpaid checkouts only persist a record

        Returns:
            True if the welcome mail was sent
        """
        email = (email or "").strip()
        if not email:
            logger.warning("Checkout event without email ignored")
            return False

        try:
            record = self._upsert_record(email, session_id, paid)
        except Exception as e:
            logger.error(f"Failed to persist checkout {session_id}: {e}", exc_info=True)
            record = None
        record_id = record["id"] if record else None

        if not paid:
            return False

        try:
            download_url = self.link_resolver.resolve(email, self.download_ttl_ms)
            if not download_url:
                raise MailDeliveryError("No download link could be produced")
            info = self.mailer.send(self.build_welcome_message(email, download_url))
        except MailDeliveryError as e:
            self._record_email(record_id, email, "failed", str(e))
            self.event_publisher.publish(WelcomeEmailFailedEvent(
                aggregate_id=session_id or "",
                occurred_at=datetime.now(timezone.utc),
                email=email,
                error_message=str(e),
            ))
            return False
        except Exception as e:
            logger.error(f"Unexpected error sending welcome email: {e}", exc_info=True)
            self._record_email(record_id, email, "failed", str(e))
            return False

        logger.info(f"Welcome email delivered via {info.transport}")
        if record_id:
            try:
                self.repository.update_record(record_id, {"email_sent": True})
            except Exception as e:
                logger.error(f"Failed to flag email_sent on {record_id}: {e}", exc_info=True)
        self._record_email(record_id, email, "sent", None)
        self.event_publisher.publish(WelcomeEmailSentEvent(
            aggregate_id=session_id or "",
            occurred_at=datetime.now(timezone.utc),
            email=email,
        ))
        return True

    def _record_email(self, record_id: Optional[str], email: str, status: str, error: Optional[str]) -> None:
        if not record_id:
            logger.warning(f"Welcome email {status} for a checkout with no stored record")
            return
        try:
            self.repository.append_log(record_id, {
                "type": "email",
                "email": email,
                "email_type": "welcome",
                "status": status,
                "error_message": error,
            })
        except Exception as e:
            logger.error(f"Failed to log email {status} for {record_id}: {e}", exc_info=True)
