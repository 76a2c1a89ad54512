"""
Unit tests for DownloadLinkResolver strategy ordering.
"""

from unittest.mock import Mock

import pytest

from soundpack.domain.access_tokens import DownloadTokenService
from soundpack.domain.asset_storage import DownloadLinkResolver, StorageResolver, TierKind
from soundpack.domain.errors import ConfigurationError
from tests.fixtures.fakes import ManualClock, StaticTier, failing_tier

DOMAIN = "https://sounds.example.com/"


@pytest.fixture
def token_service():
    return DownloadTokenService("download-secret", default_ttl_ms=86_400_000, clock=ManualClock(0))


def _link_resolver(tiers, token_service):
    return DownloadLinkResolver(
        StorageResolver(tiers),
        token_service,
        DOMAIN,
        "tesla_sounds.zip",
        "tesla_sounds.zip",
    )


class TestDownloadLinkResolver:
    """Test public -> presigned -> token URL fallback."""

    def test_public_url_preferred(self, token_service):
        tiers = [
            StaticTier("r2", presigned_url="https://r2.example.com/signed"),
            StaticTier("gcs", public_base_url="https://cdn.example.com"),
        ]

        url = _link_resolver(tiers, token_service).resolve("buyer@example.com")

        assert url == "https://cdn.example.com/tesla_sounds.zip"

    def test_presigned_url_when_no_public_url(self, token_service):
        tiers = [StaticTier("r2", presigned_url="https://r2.example.com/signed")]

        url = _link_resolver(tiers, token_service).resolve("buyer@example.com", ttl_ms=3_600_000)

        assert url == "https://r2.example.com/signed?key=tesla_sounds.zip&ttl=3600"

    def test_presign_ttl_rounds_to_at_least_one_second(self, token_service):
        tiers = [StaticTier("r2", presigned_url="https://r2.example.com/signed")]

        url = _link_resolver(tiers, token_service).resolve("buyer@example.com", ttl_ms=10)

        assert url.endswith("ttl=1")

    def test_presign_failure_moves_to_next_tier(self, token_service):
        tiers = [
            failing_tier("r2"),
            StaticTier("gcs", presigned_url="https://gcs.example.com/signed"),
        ]

        url = _link_resolver(tiers, token_service).resolve("buyer@example.com")

        assert url.startswith("https://gcs.example.com/signed")

    def test_token_url_when_no_remote_tier_can_link(self, token_service):
        # Arrange
        tiers = [failing_tier("r2"), StaticTier("local", kind=TierKind.LOCAL)]

        # Act
        url = _link_resolver(tiers, token_service).resolve("buyer@example.com")

        # Assert
        assert url.startswith("https://sounds.example.com/download/")
        token = url.rsplit("/", 1)[1]
        payload = token_service.verify(token)
        assert payload["email"] == "buyer@example.com"
        assert payload["filename"] == "tesla_sounds.zip"

    def test_local_tier_is_never_asked_to_presign(self, token_service):
        local = StaticTier("local", kind=TierKind.LOCAL, presigned_url="https://never")

        url = _link_resolver([local], token_service).resolve(None)

        assert "/download/" in url
        assert token_service.verify(url.rsplit("/", 1)[1])["email"] == ""

    def test_returns_none_when_token_cannot_be_issued(self):
        tokens = Mock()
        tokens.default_ttl_ms = 1_000
        tokens.issue.side_effect = ConfigurationError("DOWNLOAD_SECRET missing")

        assert _link_resolver([], tokens).resolve("buyer@example.com") is None
