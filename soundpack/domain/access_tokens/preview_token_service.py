"""
Preview Token Service

Issues and verifies short-lived preview tokens for streaming a single
sample. A token is self-contained: it carries the sample name, its expiry
and an HMAC-SHA256 signature, so verification needs no server-side state.

Wire format (before base64url encoding):

    <resource_name>.<expires_at_ms>.<hex signature>

The sample name may itself contain dots (``labubu1.mp3``), so verification
splits from the tail. The last two fields are strictly validated (digits
and 64 lowercase hex characters), which makes the split unambiguous.
"""

import hashlib
import hmac
import logging
import re
from typing import Iterable, Optional

from ..errors import (
    ConfigurationError,
    InvalidResourceError,
    RejectionReason,
    TokenRejectedError,
)
from .value_objects import (
    Clock,
    IssuedPreviewToken,
    PreviewClaims,
    b64url_decode,
    b64url_encode,
    system_clock,
)

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_TTL_MS = 60 * 1000

_EXPIRY_PATTERN = re.compile(r"[0-9]{1,16}")
_SIGNATURE_PATTERN = re.compile(r"[0-9a-f]{64}")


class PreviewTokenService:
    """
    Service for minting and validating preview tokens.

    Only names from a fixed allow-list can be signed. The allow-list is the
    guard against delimiter ambiguity at issuance time.
    """

    def __init__(
        self,
        secret: str,
        allowed_names: Iterable[str],
        default_ttl_ms: int = DEFAULT_PREVIEW_TTL_MS,
        clock: Clock = system_clock,
    ):
        """
        Initialize PreviewTokenService.

        Args:
            secret: Server-held HMAC key
            allowed_names: Sample names that may be previewed
            default_ttl_ms: Lifetime used when issue() gets no ttl
            clock: Callable returning the current time in epoch milliseconds

        Raises:
            ConfigurationError: If secret is empty
        """
        if not secret:
            raise ConfigurationError("PREVIEW_SECRET is required to sign preview tokens")

        self._secret = secret.encode("utf-8")
        self._allowed_names = frozenset(allowed_names)
        self._default_ttl_ms = default_ttl_ms
        self._clock = clock

    @property
    def allowed_names(self) -> frozenset:
        return self._allowed_names

    def _sign(self, content: str) -> str:
        return hmac.new(self._secret, content.encode("utf-8"), hashlib.sha256).hexdigest()

    def issue(self, resource_name: str, ttl_ms: Optional[int] = None) -> IssuedPreviewToken:
        """
        Issue a preview token for a sample.

        Args:
            resource_name: Catalog name of the sample
            ttl_ms: Lifetime in milliseconds (defaults to the service default)

        Returns:
            IssuedPreviewToken with the encoded token and its expiry

        Raises:
            InvalidResourceError: If the name is not in the allow-list
            ValueError: If ttl_ms is not positive
        """
        if resource_name not in self._allowed_names:
            raise InvalidResourceError(f"Unknown preview resource: {resource_name!r}")

        ttl = self._default_ttl_ms if ttl_ms is None else int(ttl_ms)
        if ttl <= 0:
            raise ValueError("ttl_ms must be positive")

        expires_at_ms = self._clock() + ttl
        payload = f"{resource_name}.{expires_at_ms}"
        raw = f"{payload}.{self._sign(payload)}"

        return IssuedPreviewToken(
            token=b64url_encode(raw.encode("utf-8")),
            expires_at_ms=expires_at_ms,
        )

    def verify(self, token: str) -> PreviewClaims:
        """
        Verify a preview token.

        Args:
            token: Encoded token as received from the client

        Returns:
            PreviewClaims with the sample name and expiry

        Raises:
            TokenRejectedError: If the token is malformed, the signature does
                not match, or the token has expired
        """
        try:
            raw = b64url_decode(token or "").decode("utf-8")
        except (ValueError, UnicodeDecodeError):
            raise TokenRejectedError(RejectionReason.MALFORMED)

        parts = raw.rsplit(".", 2)
        if len(parts) != 3:
            raise TokenRejectedError(RejectionReason.MALFORMED)

        resource_name, expiry_text, signature = parts
        if not resource_name or not _EXPIRY_PATTERN.fullmatch(expiry_text):
            raise TokenRejectedError(RejectionReason.MALFORMED)

        expected = self._sign(f"{resource_name}.{expiry_text}")
        if not _SIGNATURE_PATTERN.fullmatch(signature) or not hmac.compare_digest(
            expected.encode("ascii"), signature.encode("ascii")
        ):
            raise TokenRejectedError(RejectionReason.BAD_SIGNATURE)

        expires_at_ms = int(expiry_text)
        if self._clock() > expires_at_ms:
            raise TokenRejectedError(RejectionReason.EXPIRED)

        return PreviewClaims(resource_name=resource_name, expires_at_ms=expires_at_ms)
