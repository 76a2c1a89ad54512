"""
Audit Service

Best-effort download audit. Runs off the request path; failures are logged
and never reach the buyer.
"""

import logging
from typing import Optional

from soundpack.domain.subscriptions import STATUS_COMPLETED, ISubscriptionRepository

logger = logging.getLogger(__name__)

TOKEN_PREFIX_LENGTH = 8


class AuditService:
    """Records download events against the buyer's subscription record."""

    def __init__(self, repository: ISubscriptionRepository):
        self.repository = repository

    def record_download(
        self,
        email: Optional[str],
        token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> bool:
        """
        Append a download event to the buyer's latest completed record.

        Downloads without a completed record (no email in the token, or no
        finished checkout) are not recorded.

        Args:
            email: Buyer email from the download token (may be empty)
            token: Redeemed token; only its prefix is stored
            ip_address: Client address
            user_agent: Client user agent

        Returns:
            True if an event was appended, False otherwise
        """
        try:
            record = self.repository.find_by_key("email", email) if email else None
            if record is None or record.get("status") != STATUS_COMPLETED:
                logger.debug(f"No completed subscription for download {(token or '')[:TOKEN_PREFIX_LENGTH]}...")
                return False

            self.repository.append_log(
                record["id"],
                {
                    "type": "download",
                    "email": email or "",
                    "token": (token or "")[:TOKEN_PREFIX_LENGTH],
                    "ip_address": ip_address,
                    "user_agent": user_agent,
                },
            )
            return True
        except Exception as e:
            logger.error(f"Failed to record download audit: {e}", exc_info=True)
            return False
