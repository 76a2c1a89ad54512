"""
Access Tokens Domain

Stateless capability tokens for preview streaming and pack download.
"""

from .download_token_service import (
    DEFAULT_DOWNLOAD_TTL_MS,
    DownloadTokenService,
    create_download_token,
    inspect_download_token,
    verify_download_token,
)
from .preview_token_service import DEFAULT_PREVIEW_TTL_MS, PreviewTokenService
from .value_objects import Clock, IssuedPreviewToken, PreviewClaims, system_clock

__all__ = [
    "Clock",
    "DEFAULT_DOWNLOAD_TTL_MS",
    "DEFAULT_PREVIEW_TTL_MS",
    "DownloadTokenService",
    "IssuedPreviewToken",
    "PreviewClaims",
    "PreviewTokenService",
    "create_download_token",
    "inspect_download_token",
    "system_clock",
    "verify_download_token",
]
