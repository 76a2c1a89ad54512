"""
Storage Factory

Builds the ordered storage tier list from application settings. Remote
tiers come first in STORAGE_TIER_ORDER; the local tier is always last.
"""

import logging
from typing import List

from soundpack.config.settings import AppSettings
from soundpack.domain.asset_storage import IStorageTier, StorageResolver, StorageTierDescriptor, TierKind
from soundpack.domain.errors import StorageTierError
from soundpack.infrastructure.local_storage_tier import LocalStorageTier

logger = logging.getLogger(__name__)


class StorageFactory:
    """Factory for storage tiers and the resolver over them."""

    @staticmethod
    def create_tier(descriptor: StorageTierDescriptor) -> IStorageTier:
        """
        Create the tier implementation for a descriptor.

        Remote backends are imported lazily so a deployment only needs the
        client library of the tiers it actually configures.

        Raises:
            StorageTierError: If the tier client cannot be constructed
        """
        if descriptor.kind is TierKind.R2:
            from soundpack.infrastructure.r2_storage_tier import R2StorageTier
            return R2StorageTier(descriptor)
        if descriptor.kind is TierKind.GCS:
            from soundpack.infrastructure.gcs_storage_tier import GCSStorageTier
            return GCSStorageTier(descriptor)
        return LocalStorageTier(descriptor)

    @staticmethod
    def create_tiers(settings: AppSettings) -> List[IStorageTier]:
        """
        Create every configured tier in resolution order.

        A remote tier whose client cannot be built is skipped with a warning;
        the local tier is always present.
        """
        tiers: List[IStorageTier] = []
        for descriptor in settings.tier_descriptors():
            try:
                tier = StorageFactory.create_tier(descriptor)
            except StorageTierError as e:
                logger.warning(f"Skipping storage tier {descriptor.name}: {e}")
                continue
            tiers.append(tier)
            logger.info(f"Storage tier enabled: {tier.name} ({descriptor.kind.value})")
        return tiers

    @staticmethod
    def create_resolver(settings: AppSettings) -> StorageResolver:
        return StorageResolver(StorageFactory.create_tiers(settings))
