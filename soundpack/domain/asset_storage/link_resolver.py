"""
Download Link Resolver

Picks the URL a buyer receives for the pack:

1. static public URL of a publicly readable bucket
2. presigned, time-boxed URL from a remote tier
3. self-issued download token URL served by this application
"""

import logging
from typing import Optional

from ..access_tokens import DownloadTokenService
from ..errors import DomainError, StorageTierError
from .resolver import StorageResolver

logger = logging.getLogger(__name__)


class DownloadLinkResolver:
    """Resolves the best available download link for a buyer."""

    def __init__(
        self,
        resolver: StorageResolver,
        token_service: DownloadTokenService,
        domain: str,
        package_key: str,
        package_filename: str,
    ):
        self.resolver = resolver
        self.token_service = token_service
        self.domain = domain.rstrip("/")
        self.package_key = package_key
        self.package_filename = package_filename

    def resolve(self, email: Optional[str], ttl_ms: Optional[int] = None) -> Optional[str]:
        """
        Resolve a download URL for the given buyer.

        Args:
            email: Buyer email, embedded in the self-issued token payload
            ttl_ms: Link validity in milliseconds (defaults to the token service TTL)

        Returns:
            URL string, or None if every strategy failed
        """
        ttl_ms = ttl_ms if ttl_ms is not None else self.token_service.default_ttl_ms
        tiers = self.resolver.remote_tiers

        for tier in tiers:
            try:
                url = tier.public_url(self.package_key)
            except StorageTierError as e:
                logger.warning(f"Public URL unavailable from {tier.name}: {e}")
                continue
            if url:
                logger.info(f"Using public URL from {tier.name}")
                return url

        ttl_seconds = max(1, round(ttl_ms / 1000))
        for tier in tiers:
            try:
                url = tier.presign(self.package_key, ttl_seconds)
            except StorageTierError as e:
                logger.warning(f"Presign failed on {tier.name}: {e}")
                continue
            except Exception as e:
                logger.error(f"Unexpected presign error on {tier.name}: {e}", exc_info=True)
                continue
            if url:
                logger.info(f"Using presigned URL from {tier.name}")
                return url

        try:
            token = self.token_service.issue(
                {"email": email or "", "filename": self.package_filename},
                ttl_ms=ttl_ms,
            )
        except DomainError as e:
            logger.error(f"Failed to issue download token: {e}")
            return None

        return f"{self.domain}/download/{token}"
