"""
Google Cloud Storage Tier

Storage tier backed by a GCS bucket. Uses a service account file when one
is configured, default credentials otherwise.
"""

import logging
import os
from datetime import timedelta
from typing import Any, Optional

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage
from google.oauth2 import service_account

from soundpack.domain.asset_storage import (
    AssetHandle,
    AssetOrigin,
    IStorageTier,
    StorageTierDescriptor,
)
from soundpack.domain.errors import StorageTierError

logger = logging.getLogger(__name__)


class GCSStorageTier(IStorageTier):
    """Storage tier for a Google Cloud Storage bucket."""

    def __init__(self, descriptor: StorageTierDescriptor, client: Any = None):
        super().__init__(descriptor)
        self.client = client or self._create_client(descriptor)
        self.bucket = self.client.bucket(descriptor.bucket)

    @staticmethod
    def _create_client(descriptor: StorageTierDescriptor) -> storage.Client:
        credentials_path = descriptor.credentials_path
        try:
            if credentials_path and os.path.exists(credentials_path):
                credentials = service_account.Credentials.from_service_account_file(
                    credentials_path
                )
                logger.info(f"GCS client initialized with service account: {credentials_path}")
                return storage.Client(credentials=credentials)

            logger.info("GCS client initialized with default credentials")
            return storage.Client()
        except (GoogleAuthError, GoogleAPIError, OSError, ValueError) as e:
            raise StorageTierError(descriptor.name, f"Could not initialize GCS client: {e}", e)

    def fetch(self, asset_key: str) -> Optional[AssetHandle]:
        blob_name = self.descriptor.object_key(asset_key)
        try:
            blob = self.bucket.blob(blob_name)
            data = blob.download_as_bytes(timeout=self.descriptor.timeout_seconds)
        except NotFound:
            return None
        except (GoogleAPIError, GoogleAuthError, OSError) as e:
            raise StorageTierError(self.name, f"Download of {blob_name} failed: {e}", e)

        return AssetHandle(
            origin=AssetOrigin.REMOTE,
            payload=data,
            size_bytes=len(data),
            tier_name=self.name,
        )

    def presign(self, asset_key: str, ttl_seconds: int) -> Optional[str]:
        blob_name = self.descriptor.object_key(asset_key)
        try:
            blob = self.bucket.blob(blob_name)
            if not blob.exists(timeout=self.descriptor.timeout_seconds):
                return None
            return blob.generate_signed_url(
                version="v4",
                expiration=timedelta(seconds=ttl_seconds),
                method="GET",
            )
        except (GoogleAPIError, GoogleAuthError, AttributeError, ValueError) as e:
            # AttributeError: default credentials without a signing key
            raise StorageTierError(self.name, f"Failed to generate signed URL: {e}", e)

    def upload(self, asset_key: str, source_path: str, content_type: str) -> bool:
        blob_name = self.descriptor.object_key(asset_key)
        try:
            blob = self.bucket.blob(blob_name)
            blob.upload_from_filename(
                source_path,
                content_type=content_type,
                timeout=self.descriptor.timeout_seconds,
            )
        except (GoogleAPIError, GoogleAuthError, OSError) as e:
            raise StorageTierError(self.name, f"Upload of {blob_name} failed: {e}", e)

        logger.info(f"Uploaded {source_path} to gs://{self.descriptor.bucket}/{blob_name}")
        return True
