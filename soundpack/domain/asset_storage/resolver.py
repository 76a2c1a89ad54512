"""
Storage Resolver

Generic ordered fallback over storage tiers. The first tier that returns a
handle wins; a miss or a tier failure moves on to the next tier.
"""

import logging
from typing import List, Optional, Sequence

from ..errors import StorageTierError
from .storage_tier import IStorageTier
from .value_objects import AssetHandle

logger = logging.getLogger(__name__)


class StorageResolver:
    """
    Resolves logical asset keys against an ordered list of tiers.

    The tier list is fixed at construction. Remote tiers come first and the
    local tier, when present, is last.
    """

    def __init__(self, tiers: Sequence[IStorageTier]):
        self._tiers: List[IStorageTier] = list(tiers)

    @property
    def tiers(self) -> List[IStorageTier]:
        return list(self._tiers)

    @property
    def remote_tiers(self) -> List[IStorageTier]:
        return [tier for tier in self._tiers if tier.is_remote]

    def resolve(self, asset_key: str) -> Optional[AssetHandle]:
        """
        Fetch an asset from the first tier that has it.

        Args:
            asset_key: Logical asset key

        Returns:
            AssetHandle from the first hit, or None when every tier missed
        """
        for tier in self._tiers:
            try:
                handle = tier.fetch(asset_key)
            except StorageTierError as e:
                logger.warning(f"Tier {tier.name} failed for {asset_key}: {e}")
                continue
            except Exception as e:
                logger.error(
                    f"Unexpected error from tier {tier.name} for {asset_key}: {e}",
                    exc_info=True,
                )
                continue

            if handle is None:
                logger.debug(f"Tier {tier.name} has no {asset_key}")
                continue

            logger.info(
                f"Resolved {asset_key} from {tier.name} "
                f"({handle.origin.value}, {handle.size_bytes} bytes)"
            )
            return handle

        logger.info(f"Asset {asset_key} not found in any tier")
        return None

    def summary(self) -> List[dict]:
        """Tier names and kinds in resolution order, for health output."""
        return [
            {"name": tier.name, "kind": tier.descriptor.kind.value}
            for tier in self._tiers
        ]
