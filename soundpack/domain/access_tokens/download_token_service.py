"""
Download Token Service

Signed, self-describing download tokens for the full sound pack.

Wire format:

    base64url(json(payload + {"exp": <epoch ms>})) "." base64url(hmac_sha256)

The signature covers the encoded payload text, so any change to the
payload invalidates the token. Tokens may be redeemed any number of times
until they expire.
"""

import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Optional

from ..errors import ConfigurationError, RejectionReason, TokenRejectedError
from .value_objects import Clock, b64url_decode, b64url_encode, system_clock

logger = logging.getLogger(__name__)

DEFAULT_DOWNLOAD_TTL_MS = 24 * 60 * 60 * 1000
EXPIRY_FIELD = "exp"


def _signature(encoded: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), encoded.encode("ascii"), hashlib.sha256).digest()
    return b64url_encode(digest)


def create_download_token(
    payload: Dict[str, Any],
    secret: str,
    ttl_ms: Optional[int] = None,
    clock: Clock = system_clock,
) -> str:
    """
    Create a signed download token.

    Args:
        payload: Claims to embed, e.g. {"email": ..., "filename": ...}
        secret: HMAC key
        ttl_ms: Lifetime in milliseconds (defaults to 24 hours)
        clock: Callable returning the current time in epoch milliseconds

    Returns:
        Token string "<encoded payload>.<encoded signature>"

    Raises:
        ConfigurationError: If secret is empty
    """
    if not secret:
        raise ConfigurationError("DOWNLOAD_SECRET is required to generate download token")

    ttl = int(ttl_ms) if ttl_ms else DEFAULT_DOWNLOAD_TTL_MS
    data = dict(payload)
    data[EXPIRY_FIELD] = clock() + ttl

    encoded = b64url_encode(
        json.dumps(data, sort_keys=True, separators=(",", ":")).encode("utf-8")
    )
    return f"{encoded}.{_signature(encoded, secret)}"


def inspect_download_token(
    token: str,
    secret: str,
    clock: Clock = system_clock,
) -> Dict[str, Any]:
    """
    Verify a download token and return its payload.

    Raises:
        TokenRejectedError: With the reason the token was refused
    """
    if not token or not secret:
        raise TokenRejectedError(RejectionReason.MALFORMED)

    parts = token.split(".")
    if len(parts) != 2:
        raise TokenRejectedError(RejectionReason.MALFORMED)

    encoded, signature = parts
    try:
        expected = _signature(encoded, secret)
    except UnicodeEncodeError:
        raise TokenRejectedError(RejectionReason.MALFORMED)

    if not hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8")):
        raise TokenRejectedError(RejectionReason.BAD_SIGNATURE)

    try:
        payload = json.loads(b64url_decode(encoded).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        raise TokenRejectedError(RejectionReason.MALFORMED)

    if not isinstance(payload, dict):
        raise TokenRejectedError(RejectionReason.MALFORMED)

    expiry = payload.get(EXPIRY_FIELD)
    if isinstance(expiry, bool) or not isinstance(expiry, (int, float)) or not expiry:
        raise TokenRejectedError(RejectionReason.MALFORMED)

    if clock() > expiry:
        raise TokenRejectedError(RejectionReason.EXPIRED)

    return payload


def verify_download_token(
    token: str,
    secret: str,
    clock: Clock = system_clock,
) -> Optional[Dict[str, Any]]:
    """
    Verify a download token.

    Fails closed: any problem yields None and no detail is returned.

    Returns:
        The full payload (including "exp") if valid, None otherwise
    """
    try:
        return inspect_download_token(token, secret, clock)
    except TokenRejectedError as e:
        logger.debug(f"Download token rejected: {e.reason.value}")
        return None


class DownloadTokenService:
    """
    Download token codec bound to a secret and default lifetime.

    Wraps the module-level functions so the secret can be injected once at
    start-up instead of being passed around by every caller.
    """

    def __init__(
        self,
        secret: str,
        default_ttl_ms: int = DEFAULT_DOWNLOAD_TTL_MS,
        clock: Clock = system_clock,
    ):
        self._secret = secret
        self._default_ttl_ms = default_ttl_ms
        self._clock = clock

    @property
    def secret(self) -> str:
        return self._secret

    @property
    def default_ttl_ms(self) -> int:
        return self._default_ttl_ms

    def issue(self, payload: Dict[str, Any], ttl_ms: Optional[int] = None) -> str:
        return create_download_token(
            payload, self._secret, ttl_ms or self._default_ttl_ms, self._clock
        )

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        return verify_download_token(token, self._secret, self._clock)

    def inspect(self, token: str) -> Dict[str, Any]:
        return inspect_download_token(token, self._secret, self._clock)
