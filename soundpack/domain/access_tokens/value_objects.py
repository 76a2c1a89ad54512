"""
Access Token Value Objects

Immutable value objects and encoding helpers shared by the token services.
"""

import base64
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict

# Returns the current time as integer epoch milliseconds.
Clock = Callable[[], int]


def system_clock() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def b64url_encode(data: bytes) -> str:
    """Encode bytes as unpadded base64url text."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(text: str) -> bytes:
    """
    Decode unpadded base64url text.

    Raises:
        ValueError: If the text is not valid base64url
    """
    if not text or any(c not in _B64URL_ALPHABET for c in text):
        raise ValueError("Invalid base64url text")
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


_B64URL_ALPHABET = frozenset(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"
)


@dataclass(frozen=True)
class PreviewClaims:
    """
    Verified contents of a preview token.

    Attributes:
        resource_name: Catalog name of the sample the token grants access to
        expires_at_ms: Expiry as epoch milliseconds
    """

    resource_name: str
    expires_at_ms: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resource_name": self.resource_name,
            "expires_at_ms": self.expires_at_ms,
        }


@dataclass(frozen=True)
class IssuedPreviewToken:
    """A freshly minted preview token and its expiry."""

    token: str
    expires_at_ms: int
