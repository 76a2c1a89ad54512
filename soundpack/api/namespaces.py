"""
API Namespaces - Organized endpoint groups
"""

from urllib.parse import quote

from flask import current_app, request
from flask_restx import Namespace, Resource

from soundpack.api.models import (
    accepted_response,
    error_response,
    preview_list_response,
    preview_url_response,
    unsubscribe_response,
)
from soundpack.application.access_gate import AccessGate
from soundpack.application.delivery import DeliveryAdapter
from soundpack.application.fulfillment_service import FulfillmentService
from soundpack.application.task_dispatcher import TaskDispatcher
from soundpack.config.celery_config import FULFILL_CHECKOUT_TASK
from soundpack.domain.access_tokens import PreviewTokenService
from soundpack.domain.asset_storage import AssetCatalog
from soundpack.domain.errors import (
    ConfigurationError,
    ErrorCategory,
    InvalidResourceError,
    create_error_response,
)

_PREVIEW_ERRORS = {
    401: ErrorCategory.TOKEN_REJECTED,
    403: ErrorCategory.FORBIDDEN_ORIGIN,
    404: ErrorCategory.ASSET_ABSENT,
}

_DOWNLOAD_ERRORS = {
    403: ErrorCategory.TOKEN_REJECTED,
    404: ErrorCategory.ASSET_ABSENT,
}


def _resolve(interface):
    return current_app.container.resolve(interface)


def _client_ip():
    forwarded = request.headers.get("X-Forwarded-For", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr


# =============================================================================
# Preview Namespace - Signed sample previews
# =============================================================================

preview_ns = Namespace("preview", description="Signed sample preview operations", path="/")


@preview_ns.route("/preview-url")
class PreviewUrl(Resource):
    """Mint a short-lived preview URL"""

    @preview_ns.doc("get_preview_url", params={"name": "Sample name from the catalog"})
    @preview_ns.response(200, "Success", preview_url_response)
    @preview_ns.response(400, "Unknown sample", error_response)
    @preview_ns.response(500, "Service misconfigured", error_response)
    def get(self):
        """
        Get a signed preview URL

        The returned URL embeds a token valid for about one minute.
        """
        name = request.args.get("name", "").strip()
        settings = current_app.settings

        try:
            issued = _resolve(PreviewTokenService).issue(name, settings.preview_ttl_ms)
        except InvalidResourceError as e:
            return create_error_response(
                ErrorCategory.INVALID_RESOURCE, str(e), status_code=400
            )
        except ConfigurationError as e:
            current_app.logger.error(f"[PREVIEW] Cannot sign preview token: {e}")
            return create_error_response(
                ErrorCategory.CONFIGURATION_ERROR, str(e), status_code=500
            )

        url = f"/preview/{quote(name)}?token={quote(issued.token, safe='')}"
        return {"url": url, "expiresAt": issued.expires_at_ms}, 200


@preview_ns.route("/preview-list")
class PreviewList(Resource):
    """List previewable samples"""

    @preview_ns.doc("list_previews")
    @preview_ns.marshal_with(preview_list_response, code=200)
    def get(self):
        """List every sample that can be previewed"""
        catalog = _resolve(AssetCatalog)
        return {"samples": [sample.to_dict() for sample in catalog.list_samples()]}


@preview_ns.route("/preview/<string:name>")
@preview_ns.param("name", "Sample name")
class PreviewStream(Resource):
    """Stream a sample"""

    @preview_ns.doc("stream_preview", params={"token": "Preview token from /preview-url"})
    @preview_ns.response(200, "audio/mpeg stream")
    @preview_ns.response(401, "Invalid or expired token", error_response)
    @preview_ns.response(403, "Foreign origin", error_response)
    @preview_ns.response(404, "Sample not available", error_response)
    def get(self, name):
        """
        Stream a preview sample

        Requires a valid, unexpired token minted for this exact sample, and
        rejects requests whose Origin or Referer belongs to another site.
        """
        decision = _resolve(AccessGate).authorize_preview(
            name,
            request.args.get("token", ""),
            origin=request.headers.get("Origin"),
            referer=request.headers.get("Referer"),
        )

        if decision.allowed:
            return _resolve(DeliveryAdapter).serve_preview(decision.handle)

        return create_error_response(
            _PREVIEW_ERRORS.get(decision.http_status, ErrorCategory.SYSTEM_ERROR),
            status_code=decision.http_status,
        )


# =============================================================================
# Download Namespace - Token-gated pack download
# =============================================================================

download_ns = Namespace("download", description="Gated pack download", path="/")


@download_ns.route("/download/<string:token>")
@download_ns.param("token", "Signed download token")
class DownloadPackage(Resource):
    """Download the sound pack"""

    @download_ns.doc("download_package")
    @download_ns.response(200, "application/zip attachment")
    @download_ns.response(403, "Invalid or expired link", error_response)
    @download_ns.response(404, "Package not available", error_response)
    def get(self, token):
        """
        Download the sound pack with a signed link

        Links are valid for 24 hours by default and may be used repeatedly.
        """
        decision = _resolve(AccessGate).authorize_download(
            token,
            ip_address=_client_ip(),
            user_agent=request.headers.get("User-Agent"),
        )

        if decision.allowed:
            current_app.logger.info(
                f"[DOWNLOAD] Serving {decision.filename} from {decision.handle.tier_name} "
                f"for token {token[:8]}..."
            )
            return _resolve(DeliveryAdapter).serve_download(decision.handle, decision.filename)

        if decision.http_status == 404:
            current_app.logger.warning("[DOWNLOAD] Package missing from every tier")
        return create_error_response(
            _DOWNLOAD_ERRORS.get(decision.http_status, ErrorCategory.SYSTEM_ERROR),
            status_code=decision.http_status,
        )


# =============================================================================
# Checkout Namespace - Upstream checkout events
# =============================================================================

checkout_ns = Namespace("checkout", description="Checkout completion and mailing list", path="/")


@checkout_ns.route("/success")
class CheckoutSuccess(Resource):
    """Checkout completion callback"""

    @checkout_ns.doc(
        "checkout_success",
        params={"email": "Buyer email", "session_id": "Checkout session id"},
    )
    @checkout_ns.response(202, "Accepted", accepted_response)
    @checkout_ns.response(400, "Missing email", error_response)
    def get(self):
        """
        Accept a completed checkout

        Fulfillment (record update and welcome mail) runs in the background.
        """
        email = request.args.get("email", "").strip()
        session_id = request.args.get("session_id", "").strip() or None

        if not email:
            return create_error_response(
                ErrorCategory.INVALID_REQUEST, "Missing email", status_code=400
            )

        fulfillment = _resolve(FulfillmentService)
        _resolve(TaskDispatcher).dispatch(
            FULFILL_CHECKOUT_TASK,
            fulfillment.handle_checkout,
            email=email,
            session_id=session_id,
            paid=True,
        )
        current_app.logger.info(f"[CHECKOUT] Accepted checkout {session_id or '-'}")
        return {"status": "accepted"}, 202


@checkout_ns.route("/unsubscribe")
class Unsubscribe(Resource):
    """Mailing list opt-out"""

    UNSUBSCRIBED_MESSAGE = (
        "You have been unsubscribed from Tesla Sounds notifications. "
        "If this was a mistake, please contact support."
    )

    def _acknowledge(self):
        email = request.values.get("email", "").strip()
        current_app.logger.info(f"[UNSUBSCRIBE] Request received for {email or '-'}")
        return {"status": "unsubscribed", "message": self.UNSUBSCRIBED_MESSAGE}, 200

    @checkout_ns.doc("unsubscribe", params={"email": "Address to remove"})
    @checkout_ns.response(200, "Acknowledged", unsubscribe_response)
    def get(self):
        """Unsubscribe from notifications"""
        return self._acknowledge()

    @checkout_ns.doc("unsubscribe_post", params={"email": "Address to remove"})
    @checkout_ns.response(200, "Acknowledged", unsubscribe_response)
    def post(self):
        """Unsubscribe from notifications"""
        return self._acknowledge()
