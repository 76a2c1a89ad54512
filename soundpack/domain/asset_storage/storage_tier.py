"""
Storage Tier Interface

Abstract capability shared by every storage backend in the resolution chain.
Keeping the interface in the domain layer lets the resolver iterate tiers
without knowing whether it talks to R2, GCS or the local filesystem.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .value_objects import AssetHandle, StorageTierDescriptor


class IStorageTier(ABC):
    """
    Unified interface for one tier in the storage fallback chain.

    Contract Guarantees:
    - fetch() returns None when the key does not exist in this tier
    - every other failure (network, timeout, credentials, malformed response)
      is raised as StorageTierError, never as a library-specific exception
    - remote tiers return fully buffered bytes; the local tier returns a stream
    - presign() and public_url() return None when the tier cannot produce a
      reference; they raise StorageTierError on backend failures
    """

    def __init__(self, descriptor: StorageTierDescriptor):
        self.descriptor = descriptor

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def is_remote(self) -> bool:
        return self.descriptor.kind.is_remote

    @abstractmethod
    def fetch(self, asset_key: str) -> Optional[AssetHandle]:
        """
        Fetch an asset.

        Args:
            asset_key: Logical asset key (e.g. 'tesla_sounds.zip')

        Returns:
            AssetHandle if found, None if the key does not exist here

        Raises:
            StorageTierError: On any other failure
        """
        pass  # pragma: no cover

    def public_url(self, asset_key: str) -> Optional[str]:
        """
        Static URL for the asset when the bucket is publicly readable.

        Returns:
            URL string, or None if no public base URL is configured
        """
        base = self.descriptor.public_base_url
        if not base:
            return None
        return f"{base.rstrip('/')}/{self.descriptor.object_key(asset_key)}"

    def presign(self, asset_key: str, ttl_seconds: int) -> Optional[str]:
        """
        Time-boxed presigned URL for the asset.

        Returns:
            URL string, or None if this tier cannot presign

        Raises:
            StorageTierError: If the backend failed while presigning
        """
        return None

    def upload(self, asset_key: str, source_path: str, content_type: str) -> bool:
        """
        Upload a local file under the given logical key.

        Returns:
            True on success, False if this tier does not accept uploads

        Raises:
            StorageTierError: If the backend failed during the upload
        """
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
