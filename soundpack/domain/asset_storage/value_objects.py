"""
Asset Storage Value Objects

Tier descriptors and the handle returned by a successful resolution.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Optional, Union

logger = logging.getLogger(__name__)


class TierKind(Enum):
    """Kinds of storage backend a tier can be."""

    R2 = "r2"
    GCS = "gcs"
    LOCAL = "local"

    @property
    def is_remote(self) -> bool:
        return self is not TierKind.LOCAL


class AssetOrigin(Enum):
    """Where resolved bytes came from."""

    REMOTE = "remote"
    LOCAL = "local"


@dataclass(frozen=True)
class StorageTierDescriptor:
    """
    Static configuration for one storage tier, built once at start-up.

    Remote tiers use bucket, key_prefix, the credential fields and an
    optional public_base_url. The local tier uses root_path and package_path.

    Attributes:
        kind: Backend kind
        name: Short label used in logs and health output
        bucket: Bucket name (remote tiers)
        key_prefix: Prefix prepended to every logical key (remote tiers)
        endpoint_url: Explicit S3 endpoint (R2); derived from account_id if unset
        account_id: Cloudflare account id (R2)
        access_key_id: Access key id (R2)
        secret_access_key: Secret access key (R2)
        credentials_path: Service account JSON path (GCS)
        public_base_url: Base URL when the bucket is publicly readable
        timeout_seconds: Connect/read timeout applied to every remote call
        root_path: Directory holding bundled assets (local tier)
        package_path: Explicit path of the bundled package (local tier)
        package_key: Logical key that maps to package_path (local tier)
        samples_path: Directory holding preview samples (local tier)
        samples_prefix: Logical key prefix that maps to samples_path (local tier)
    """

    kind: TierKind
    name: str
    bucket: str = ""
    key_prefix: str = ""
    endpoint_url: Optional[str] = None
    account_id: Optional[str] = None
    access_key_id: Optional[str] = field(default=None, repr=False)
    secret_access_key: Optional[str] = field(default=None, repr=False)
    credentials_path: Optional[str] = None
    public_base_url: Optional[str] = None
    timeout_seconds: float = 10.0
    root_path: Optional[str] = None
    package_path: Optional[str] = None
    package_key: Optional[str] = None
    samples_path: Optional[str] = None
    samples_prefix: Optional[str] = None

    def object_key(self, asset_key: str) -> str:
        """Map a logical asset key to the key used inside this tier."""
        return f"{self.key_prefix}{asset_key}"


@dataclass
class AssetHandle:
    """
    Result of a successful resolution.

    Remote tiers always materialize the full body into ``payload`` as bytes.
    The local tier hands back an open binary stream. The handle is owned by
    the delivery adapter until the response completes.

    Attributes:
        origin: REMOTE or LOCAL
        payload: bytes for remote hits, a readable binary stream for local hits
        size_bytes: Size of the asset in bytes
        tier_name: Label of the tier that produced the bytes
    """

    origin: AssetOrigin
    payload: Union[bytes, BinaryIO]
    size_bytes: int
    tier_name: str

    @property
    def is_buffered(self) -> bool:
        return isinstance(self.payload, (bytes, bytearray))

    def close(self) -> None:
        """Release the underlying stream, if any."""
        if self.is_buffered:
            return
        try:
            self.payload.close()
        except OSError as e:
            logger.warning(f"Failed to close asset stream from {self.tier_name}: {e}")
