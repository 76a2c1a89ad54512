"""
Access Gate

Request-time policy for preview and download redemption. Verifies the
capability token, applies the origin check for previews, and consults the
storage resolver only for authorized requests.

Rejection reasons are logged here and never returned to the caller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from soundpack.application.audit_service import AuditService
from soundpack.application.event_publisher import EventPublisher
from soundpack.application.task_dispatcher import TaskDispatcher
from soundpack.config.celery_config import RECORD_DOWNLOAD_TASK
from soundpack.domain.access_tokens import DownloadTokenService, PreviewTokenService
from soundpack.domain.asset_storage import AssetCatalog, AssetHandle, StorageResolver, sanitize_filename
from soundpack.domain.errors import RejectionReason, TokenRejectedError
from soundpack.domain.events import AssetResolvedEvent, DownloadAuthorizedEvent

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


class GateOutcome(Enum):
    """Terminal state of a gate run."""

    SERVED = "served"
    TOKEN_REJECTED = "token_rejected"
    FORBIDDEN_ORIGIN = "forbidden_origin"
    NOT_FOUND = "not_found"


@dataclass
class GateDecision:
    """
    Result of a gate run.

    Attributes:
        outcome: Terminal state
        http_status: Status code the HTTP layer should answer with
        handle: Resolved asset for SERVED, None otherwise
        filename: Attachment filename for downloads
    """

    outcome: GateOutcome
    http_status: int
    handle: Optional[AssetHandle] = None
    filename: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GateOutcome.SERVED


def _origin_tuple(url: str):
    parts = urlsplit(url)
    scheme = (parts.scheme or "").lower()
    host = (parts.hostname or "").lower()
    try:
        port = parts.port or _DEFAULT_PORTS.get(scheme)
    except ValueError:
        return None
    if not scheme or not host:
        return None
    return scheme, host, port


def origin_allowed(domain: str, origin: Optional[str], referer: Optional[str]) -> bool:
    """
    Check a request's Origin (or Referer) against the canonical domain.

    Compares scheme, host and port after parsing; a Referer that merely
    starts with the domain string does not pass. Requests carrying neither
    header are allowed.
    """
    source = origin or referer
    if not source:
        return True
    expected = _origin_tuple(domain)
    return expected is not None and _origin_tuple(source) == expected


class AccessGate:
    """Preview and download redemption policy."""

    def __init__(
        self,
        preview_tokens: PreviewTokenService,
        download_tokens: DownloadTokenService,
        resolver: StorageResolver,
        catalog: AssetCatalog,
        dispatcher: TaskDispatcher,
        audit_service: AuditService,
        event_publisher: EventPublisher,
        domain: str,
    ):
        self.preview_tokens = preview_tokens
        self.download_tokens = download_tokens
        self.resolver = resolver
        self.catalog = catalog
        self.dispatcher = dispatcher
        self.audit_service = audit_service
        self.event_publisher = event_publisher
        self.domain = domain

    def _resolve(self, asset_key: str) -> Optional[AssetHandle]:
        handle = self.resolver.resolve(asset_key)
        if handle is not None:
            self.event_publisher.publish(AssetResolvedEvent(
                aggregate_id=asset_key,
                occurred_at=datetime.now(timezone.utc),
                tier_name=handle.tier_name,
                origin=handle.origin.value,
                size_bytes=handle.size_bytes,
            ))
        return handle

    def authorize_preview(
        self,
        asset_name: str,
        token: str,
        origin: Optional[str] = None,
        referer: Optional[str] = None,
    ) -> GateDecision:
        """
        Run the preview gate.

        Pending -> token verified -> origin checked -> resolved.

        Returns:
            GateDecision with 401 on token rejection, 403 on a foreign origin,
            404 when the sample is not in the catalog or no tier has it, 200
            with a handle otherwise
        """
        try:
            claims = self.preview_tokens.verify(token)
            if claims.resource_name != asset_name:
                raise TokenRejectedError(RejectionReason.RESOURCE_MISMATCH)
        except TokenRejectedError as e:
            logger.info(f"[PREVIEW] Token rejected for {asset_name}: {e.reason.value}")
            return GateDecision(GateOutcome.TOKEN_REJECTED, 401)

        if not origin_allowed(self.domain, origin, referer):
            logger.info(f"[PREVIEW] Forbidden origin for {asset_name}: {origin or referer}")
            return GateDecision(GateOutcome.FORBIDDEN_ORIGIN, 403)

        if not self.catalog.is_sample(asset_name):
            logger.warning(f"[PREVIEW] Signed token for {asset_name} which is not in the catalog")
            return GateDecision(GateOutcome.NOT_FOUND, 404)

        handle = self._resolve(self.catalog.sample_key(asset_name))
        if handle is None:
            return GateDecision(GateOutcome.NOT_FOUND, 404)
        return GateDecision(GateOutcome.SERVED, 200, handle=handle)

    def authorize_download(
        self,
        token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> GateDecision:
        """
        Run the download gate.

        Pending -> token verified -> filename sanitized -> audit dispatched
        -> resolved. A rejected token never reaches the resolver.

        Returns:
            GateDecision with 403 on token rejection, 404 when the package is
            absent from every tier, 200 with a handle otherwise
        """
        try:
            payload = self.download_tokens.inspect(token)
        except TokenRejectedError as e:
            logger.info(f"[DOWNLOAD] Token {(token or '')[:8]}... rejected: {e.reason.value}")
            return GateDecision(GateOutcome.TOKEN_REJECTED, 403)

        filename = sanitize_filename(payload.get("filename"), self.catalog.package_filename)
        email = str(payload.get("email") or "")

        self.dispatcher.dispatch(
            RECORD_DOWNLOAD_TASK,
            self.audit_service.record_download,
            email=email,
            token=token,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.event_publisher.publish(DownloadAuthorizedEvent(
            aggregate_id=self.catalog.package_key,
            occurred_at=datetime.now(timezone.utc),
            email=email,
            filename=filename,
            token_prefix=token[:8],
        ))

        handle = self._resolve(self.catalog.package_key)
        if handle is None:
            return GateDecision(GateOutcome.NOT_FOUND, 404, filename=filename)
        return GateDecision(GateOutcome.SERVED, 200, handle=handle, filename=filename)
