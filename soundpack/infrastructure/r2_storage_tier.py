"""
Cloudflare R2 Storage Tier

S3-compatible tier backed by a boto3 client. R2 uses the "auto" region and
an account-scoped endpoint.
"""

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from soundpack.domain.asset_storage import (
    AssetHandle,
    AssetOrigin,
    IStorageTier,
    StorageTierDescriptor,
)
from soundpack.domain.errors import StorageTierError

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound"}


def r2_endpoint(account_id: str) -> str:
    """Account-scoped R2 endpoint URL."""
    return f"https://{account_id}.r2.cloudflarestorage.com"


class R2StorageTier(IStorageTier):
    """
    Storage tier for a Cloudflare R2 bucket.

    Every call uses the descriptor's timeout for both connect and read, with
    a small bounded retry budget, so a hung endpoint is reported as a tier
    failure instead of stalling the request.
    """

    def __init__(self, descriptor: StorageTierDescriptor, client: Any = None):
        super().__init__(descriptor)
        self.client = client or self._create_client(descriptor)

    @staticmethod
    def _create_client(descriptor: StorageTierDescriptor):
        endpoint = descriptor.endpoint_url
        if not endpoint:
            if not descriptor.account_id:
                raise StorageTierError(descriptor.name, "R2 account id or endpoint is required")
            endpoint = r2_endpoint(descriptor.account_id)

        try:
            return boto3.client(
                "s3",
                endpoint_url=endpoint,
                aws_access_key_id=descriptor.access_key_id,
                aws_secret_access_key=descriptor.secret_access_key,
                region_name="auto",
                config=Config(
                    connect_timeout=descriptor.timeout_seconds,
                    read_timeout=descriptor.timeout_seconds,
                    retries={"max_attempts": 2, "mode": "standard"},
                    signature_version="s3v4",
                ),
            )
        except (BotoCoreError, ValueError) as e:
            raise StorageTierError(descriptor.name, f"Failed to create R2 client: {e}", e)

    @staticmethod
    def _is_not_found(error: ClientError) -> bool:
        code = str(error.response.get("Error", {}).get("Code", ""))
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
        return code in _NOT_FOUND_CODES or status == 404

    def fetch(self, asset_key: str) -> Optional[AssetHandle]:
        object_key = self.descriptor.object_key(asset_key)
        try:
            response = self.client.get_object(Bucket=self.descriptor.bucket, Key=object_key)
            body = response["Body"]
            try:
                data = body.read()
            finally:
                body.close()
        except ClientError as e:
            if self._is_not_found(e):
                return None
            raise StorageTierError(self.name, f"get_object failed for {object_key}: {e}", e)
        except (BotoCoreError, OSError, KeyError) as e:
            raise StorageTierError(self.name, f"Failed to read {object_key}: {e}", e)

        return AssetHandle(
            origin=AssetOrigin.REMOTE,
            payload=data,
            size_bytes=len(data),
            tier_name=self.name,
        )

    def presign(self, asset_key: str, ttl_seconds: int) -> Optional[str]:
        object_key = self.descriptor.object_key(asset_key)
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.descriptor.bucket, "Key": object_key},
                ExpiresIn=int(ttl_seconds),
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageTierError(self.name, f"Failed to presign {object_key}: {e}", e)

    def upload(self, asset_key: str, source_path: str, content_type: str) -> bool:
        object_key = self.descriptor.object_key(asset_key)
        try:
            self.client.upload_file(
                source_path,
                self.descriptor.bucket,
                object_key,
                ExtraArgs={"ContentType": content_type},
            )
        except (ClientError, BotoCoreError, OSError) as e:
            raise StorageTierError(self.name, f"Upload of {object_key} failed: {e}", e)

        logger.info(f"Uploaded {source_path} to r2://{self.descriptor.bucket}/{object_key}")
        return True
