"""
Asset Storage Domain

Catalog of sellable assets, the storage tier interface and the ordered
resolution chain over tiers.
"""

from .catalog import DEFAULT_PACKAGE_KEY, DEFAULT_SAMPLES_PREFIX, AssetCatalog, PreviewSample
from .filenames import sanitize_filename
from .link_resolver import DownloadLinkResolver
from .resolver import StorageResolver
from .storage_tier import IStorageTier
from .value_objects import AssetHandle, AssetOrigin, StorageTierDescriptor, TierKind

__all__ = [
    "AssetCatalog",
    "AssetHandle",
    "AssetOrigin",
    "DEFAULT_PACKAGE_KEY",
    "DEFAULT_SAMPLES_PREFIX",
    "DownloadLinkResolver",
    "IStorageTier",
    "PreviewSample",
    "StorageResolver",
    "StorageTierDescriptor",
    "TierKind",
    "sanitize_filename",
]
