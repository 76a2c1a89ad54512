"""
Unit tests for API REST endpoints.

The app is built by the factory with in-memory tiers, repository and mailer.
Validates request handling, response formatting, and status codes.
"""

from unittest.mock import Mock
from urllib.parse import parse_qs, urlsplit

import pytest

from soundpack.application.access_gate import AccessGate
from soundpack.application.task_dispatcher import TaskDispatcher
from soundpack.config.celery_config import FULFILL_CHECKOUT_TASK
from soundpack.domain.access_tokens import DownloadTokenService, PreviewTokenService
from tests.fixtures.assets import DOMAIN, PACKAGE_BYTES, SAMPLE_BYTES


def _preview_token(app, name="labubu1.mp3"):
    return app.container.resolve(PreviewTokenService).issue(name).token


def _download_token(app, **payload):
    base = {"email": "buyer@example.com", "filename": "tesla_sounds.zip"}
    base.update(payload)
    return app.container.resolve(DownloadTokenService).issue(base)


# =============================================================================
# Preview URL
# =============================================================================

class TestPreviewUrlEndpoint:
    """Test GET /preview-url"""

    def test_returns_signed_url(self, client, clock):
        # Act
        response = client.get("/preview-url?name=labubu1.mp3")

        # Assert
        assert response.status_code == 200
        data = response.get_json()
        assert data["expiresAt"] == clock() + 60_000
        parts = urlsplit(data["url"])
        assert parts.path == "/preview/labubu1.mp3"
        assert parse_qs(parts.query)["token"][0]

    def test_unknown_sample_is_400(self, client):
        response = client.get("/preview-url?name=tesla_sounds.zip")

        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_resource"

    def test_missing_name_is_400(self, client):
        assert client.get("/preview-url").status_code == 400

    def test_cors_allows_canonical_domain(self, client):
        response = client.get("/preview-url?name=labubu1.mp3", headers={"Origin": DOMAIN})

        assert response.headers.get("Access-Control-Allow-Origin") == DOMAIN

    def test_cors_ignores_foreign_origin(self, client):
        response = client.get("/preview-url?name=labubu1.mp3", headers={"Origin": "https://evil.example.com"})

        assert "Access-Control-Allow-Origin" not in response.headers


class TestPreviewListEndpoint:
    """Test GET /preview-list"""

    def test_lists_samples(self, client):
        response = client.get("/preview-list")

        assert response.status_code == 200
        samples = response.get_json()["samples"]
        assert len(samples) == 6
        assert samples[0] == {
            "filename": "labubu1.mp3",
            "labelEn": "Labubu Chirp",
            "labelZh": "Labubu 锁车音 · 版本 1",
        }


# =============================================================================
# Preview stream
# =============================================================================

class TestPreviewEndpoint:
    """Test GET /preview/<name>"""

    def test_round_trip_from_preview_url(self, client):
        # Arrange
        url = client.get("/preview-url?name=labubu1.mp3").get_json()["url"]

        # Act
        response = client.get(url, headers={"Referer": f"{DOMAIN}/sounds"})

        # Assert
        assert response.status_code == 200
        assert response.data == SAMPLE_BYTES
        assert response.headers["Content-Type"] == "audio/mpeg"
        assert response.headers["Content-Disposition"] == 'inline; filename="preview.mp3"'
        assert response.headers["Cache-Control"] == "no-store, max-age=0"
        assert response.headers["Referrer-Policy"] == "no-referrer"
        assert response.headers["Cross-Origin-Resource-Policy"] == "same-origin"

    def test_missing_token_is_401(self, client):
        response = client.get("/preview/labubu1.mp3")

        assert response.status_code == 401
        assert response.get_json()["error"] == "token_rejected"

    def test_token_for_other_sample_is_401(self, app, client):
        token = _preview_token(app, "windows.mp3")

        assert client.get(f"/preview/labubu1.mp3?token={token}").status_code == 401

    def test_expired_token_is_401(self, app, client, clock):
        token = _preview_token(app)
        clock.advance(61_000)

        assert client.get(f"/preview/labubu1.mp3?token={token}").status_code == 401

    def test_foreign_referer_is_403(self, app, client):
        token = _preview_token(app)

        response = client.get(
            f"/preview/labubu1.mp3?token={token}",
            headers={"Referer": "https://sounds.example.com.evil.io/"},
        )

        assert response.status_code == 403
        assert response.get_json()["error"] == "forbidden_origin"

    def test_sample_absent_is_404(self, app, client):
        token = _preview_token(app, "jiming.mp3")

        response = client.get(f"/preview/jiming.mp3?token={token}")

        assert response.status_code == 404
        assert response.get_json()["error"] == "asset_absent"

    def test_local_fallback_streams(self, app, client):
        token = _preview_token(app, "windows.mp3")

        response = client.get(f"/preview/windows.mp3?token={token}")

        assert response.status_code == 200
        assert response.data == SAMPLE_BYTES


# =============================================================================
# Download
# =============================================================================

class TestDownloadEndpoint:
    """Test GET /download/<token>"""

    def test_valid_token_downloads_package(self, app, client):
        token = _download_token(app)

        response = client.get(f"/download/{token}")

        assert response.status_code == 200
        assert response.data == PACKAGE_BYTES
        assert response.headers["Content-Type"] == "application/zip"
        assert response.headers["Content-Disposition"] == 'attachment; filename="tesla_sounds.zip"'
        assert response.headers["Content-Length"] == str(len(PACKAGE_BYTES))

    def test_tampered_token_is_403_without_storage_access(self, app, client, remote_tier, local_tier):
        # Arrange
        token = _download_token(app)
        tampered = token[:-1] + ("A" if token[-1] != "A" else "B")

        # Act
        response = client.get(f"/download/{tampered}")

        # Assert
        assert response.status_code == 403
        assert response.get_json()["error"] == "token_rejected"
        assert remote_tier.fetched == []
        assert local_tier.fetched == []

    def test_traversal_filename_is_sanitized(self, app, client):
        token = _download_token(app, filename="../../etc/passwd")

        response = client.get(f"/download/{token}")

        assert response.headers["Content-Disposition"] == 'attachment; filename="etcpasswd"'

    def test_package_absent_is_404(self, app, client, remote_tier, local_tier):
        remote_tier.assets.clear()
        local_tier.assets.clear()

        response = client.get(f"/download/{_download_token(app)}")

        assert response.status_code == 404
        assert response.get_json()["error"] == "asset_absent"

    def test_download_dispatches_audit(self, app, client):
        dispatcher = Mock()
        app.container.resolve(AccessGate).dispatcher = dispatcher
        token = _download_token(app)

        client.get(f"/download/{token}", headers={
            "X-Forwarded-For": "198.51.100.7, 10.0.0.1",
            "User-Agent": "curl/8",
        })

        _, kwargs = dispatcher.dispatch.call_args
        assert kwargs["ip_address"] == "198.51.100.7"
        assert kwargs["user_agent"] == "curl/8"
        assert kwargs["token"] == token


# =============================================================================
# Checkout
# =============================================================================

class TestCheckoutEndpoints:
    """Test /success and /unsubscribe"""

    def test_success_accepts_and_dispatches(self, app, client):
        dispatcher = Mock()
        app.container.override(TaskDispatcher, dispatcher)

        response = client.get("/success?email=buyer@example.com&session_id=cs_123")

        assert response.status_code == 202
        assert response.get_json() == {"status": "accepted"}
        args, kwargs = dispatcher.dispatch.call_args
        assert args[0] == FULFILL_CHECKOUT_TASK
        assert kwargs == {"email": "buyer@example.com", "session_id": "cs_123", "paid": True}

    def test_success_without_email_is_400(self, client):
        response = client.get("/success?session_id=cs_123")

        assert response.status_code == 400
        assert response.get_json()["error"] == "invalid_request"

    @pytest.mark.parametrize("method", ["get", "post"])
    def test_unsubscribe(self, client, method):
        response = getattr(client, method)("/unsubscribe?email=buyer@example.com")

        assert response.status_code == 200
        assert response.get_json()["status"] == "unsubscribed"


# =============================================================================
# Health
# =============================================================================

class TestHealthEndpoint:
    """Test GET /health"""

    def test_reports_tiers(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["storage"] == [
            {"name": "r2", "kind": "r2"},
            {"name": "local", "kind": "local"},
        ]
        assert data["redis"] == "not_used"
        assert data["celery"] == "not_configured"
