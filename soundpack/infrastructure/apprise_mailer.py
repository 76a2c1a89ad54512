"""
Apprise Mail Transport

Sends mail through Apprise using a mailtos:// URL, either given verbatim in
MAIL_URL or built from the SMTP_* settings. The recipient and custom headers
are appended to the URL per message.
"""

import logging
from typing import List, Optional
from urllib.parse import quote, urlencode

import apprise

from soundpack.domain.errors import MailDeliveryError
from soundpack.domain.notifications import DeliveryInfo, IMailTransport, OutboundMessage

# Apprise logs every successful send at INFO; this module logs its own outcome.
logging.getLogger("apprise").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_smtp_url(
    host: str,
    port: int,
    user: Optional[str],
    password: Optional[str],
    from_email: Optional[str],
) -> str:
    """Build an Apprise mailtos:// base URL from SMTP settings."""
    credentials = ""
    if user:
        credentials = quote(user, safe="")
        if password:
            credentials += ":" + quote(password, safe="")
        credentials += "@"

    query = {}
    if from_email:
        query["from"] = from_email
    suffix = f"?{urlencode(query)}" if query else ""
    return f"mailtos://{credentials}{host}:{port}/{suffix}"


class AppriseMailer(IMailTransport):
    """IMailTransport implementation on top of Apprise."""

    def __init__(self, base_url: Optional[str]):
        self.base_url = base_url

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    def _message_url(self, message: OutboundMessage) -> str:
        params = {"to": message.to}
        for name, value in message.headers.items():
            params[f"+{name}"] = value
        separator = "&" if "?" in self.base_url else "?"
        return f"{self.base_url}{separator}{urlencode(params)}"

    def _attachments(self, paths: List[str]) -> Optional[apprise.AppriseAttachment]:
        if not paths:
            return None
        attach = apprise.AppriseAttachment()
        for path in paths:
            if not attach.add(path):
                raise MailDeliveryError(f"Attachment could not be added: {path}")
        return attach

    def send(self, message: OutboundMessage) -> DeliveryInfo:
        if not self.is_configured:
            raise MailDeliveryError("Mail transport is not configured (set MAIL_URL or SMTP_HOST)")

        apobj = apprise.Apprise()
        if not apobj.add(self._message_url(message)):
            raise MailDeliveryError("Mail URL was rejected by Apprise")

        if message.html:
            body, body_format = message.html, apprise.NotifyFormat.HTML
        else:
            body, body_format = message.text, apprise.NotifyFormat.TEXT

        try:
            ok = apobj.notify(
                title=message.subject,
                body=body,
                body_format=body_format,
                attach=self._attachments(message.attachments),
            )
        except MailDeliveryError:
            raise
        except Exception as e:
            raise MailDeliveryError(f"Mail transport raised: {e}", e)

        if not ok:
            raise MailDeliveryError(f"Mail delivery to {message.to} failed")

        logger.info(f"Mail sent to {message.to}: {message.subject}")
        return DeliveryInfo(transport="apprise", recipient=message.to)
