"""
Delivery Adapter

Turns a resolved AssetHandle into a Flask response with the header policy
for previews and downloads.
"""

import logging
from typing import Dict, Iterator, Optional

from flask import Response, jsonify

from soundpack.domain.asset_storage import AssetHandle
from soundpack.domain.errors import ErrorCategory, create_error_response

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

PREVIEW_FILENAME = "preview.mp3"
PREVIEW_CONTENT_TYPE = "audio/mpeg"
PACKAGE_CONTENT_TYPE = "application/zip"


class DeliveryAdapter:
    """Builds responses from asset handles; owns the handle until it is closed."""

    def __init__(self, chunk_size: int = CHUNK_SIZE):
        self.chunk_size = chunk_size

    @staticmethod
    def _headers(handle: AssetHandle, content_type: str, disposition: str, preview: bool) -> Dict[str, str]:
        headers = {
            "Content-Type": content_type,
            "Content-Disposition": disposition,
            "Content-Length": str(handle.size_bytes),
            "Cache-Control": "no-store, max-age=0",
        }
        if preview:
            headers["Referrer-Policy"] = "no-referrer"
            headers["Cross-Origin-Resource-Policy"] = "same-origin"
        return headers

    def serve_preview(self, handle: AssetHandle) -> Response:
        return self.serve(
            handle,
            PREVIEW_CONTENT_TYPE,
            f'inline; filename="{PREVIEW_FILENAME}"',
            preview=True,
        )

    def serve_download(self, handle: AssetHandle, filename: str) -> Response:
        return self.serve(
            handle,
            PACKAGE_CONTENT_TYPE,
            f'attachment; filename="{filename}"',
        )

    def serve(
        self,
        handle: AssetHandle,
        content_type: str,
        disposition: str,
        preview: bool = False,
    ) -> Response:
        """
        Build the response for a handle.

        Buffered handles are written as a single body. Streamed handles are
        sent in chunks; the first chunk is read before the response exists
        so an early read error becomes a 500 instead of a truncated body.
        """
        headers = self._headers(handle, content_type, disposition, preview)

        if handle.is_buffered:
            return Response(bytes(handle.payload), status=200, headers=headers)

        try:
            first_chunk = handle.payload.read(self.chunk_size)
        except OSError as e:
            logger.error(f"Failed to read asset from {handle.tier_name}: {e}")
            handle.close()
            body, status = create_error_response(ErrorCategory.SYSTEM_ERROR, str(e), status_code=500)
            error_response = jsonify(body)
            error_response.status_code = status
            return error_response

        response = Response(
            self._stream(handle, first_chunk), status=200, headers=headers
        )
        response.call_on_close(handle.close)
        return response

    def _stream(self, handle: AssetHandle, first_chunk: Optional[bytes]) -> Iterator[bytes]:
        try:
            chunk = first_chunk
            while chunk:
                yield chunk
                chunk = handle.payload.read(self.chunk_size)
        except OSError as e:
            # Headers are already sent; the short body aborts the connection
            logger.error(f"Stream from {handle.tier_name} interrupted: {e}")
        finally:
            handle.close()
