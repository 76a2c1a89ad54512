"""
Local Storage Tier

Last-resort tier that serves assets bundled with the deployment. Logical
keys map to files under a root directory, with explicit aliases for the
packaged archive and the samples directory.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from soundpack.domain.asset_storage import (
    AssetHandle,
    AssetOrigin,
    IStorageTier,
    StorageTierDescriptor,
)
from soundpack.domain.errors import StorageTierError

logger = logging.getLogger(__name__)


class LocalStorageTier(IStorageTier):
    """
    Filesystem tier returning streaming handles.

    Key mapping:
        package_key               -> package_path
        samples_prefix + <name>   -> samples_path/<name>
        anything else             -> root_path/<key>

    Resolved paths must stay inside the directory they were mapped into.
    """

    def __init__(self, descriptor: StorageTierDescriptor):
        super().__init__(descriptor)
        self.root_path = Path(descriptor.root_path or ".").resolve()
        self.package_path = Path(descriptor.package_path).resolve() if descriptor.package_path else None
        self.samples_path = Path(descriptor.samples_path).resolve() if descriptor.samples_path else None

    @staticmethod
    def _contained(base: Path, relative: str) -> Optional[Path]:
        candidate = (base / relative).resolve()
        try:
            candidate.relative_to(base)
        except ValueError:
            return None
        return candidate

    def _candidates(self, asset_key: str) -> List[Path]:
        if not asset_key or "\x00" in asset_key:
            return []

        if self.package_path and asset_key == self.descriptor.package_key:
            return [self.package_path]

        paths: List[Path] = []
        prefix = self.descriptor.samples_prefix
        if self.samples_path and prefix and asset_key.startswith(prefix):
            path = self._contained(self.samples_path, asset_key[len(prefix):])
            if path is not None:
                paths.append(path)

        path = self._contained(self.root_path, asset_key)
        if path is not None:
            paths.append(path)
        return paths

    def resolve_path(self, asset_key: str) -> Optional[Path]:
        """Path of the first existing file the key maps to, or None."""
        for path in self._candidates(asset_key):
            if path.is_file():
                return path
        return None

    def fetch(self, asset_key: str) -> Optional[AssetHandle]:
        path = self.resolve_path(asset_key)
        if path is None:
            return None

        try:
            stream = open(path, "rb")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageTierError(self.name, f"Cannot open {path}: {e}", e)

        try:
            size = os.fstat(stream.fileno()).st_size
        except OSError as e:
            stream.close()
            raise StorageTierError(self.name, f"Cannot stat {path}: {e}", e)

        return AssetHandle(
            origin=AssetOrigin.LOCAL,
            payload=stream,
            size_bytes=size,
            tier_name=self.name,
        )
