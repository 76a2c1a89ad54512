"""
Shared pytest fixtures and configuration for the sound pack test suite.

This module provides:
- Hypothesis configuration for property-based testing
- A manual clock and fixed secrets for the token services
- In-memory storage tiers, subscription store and mail transport
- A Flask application wired through the app factory with those doubles
"""

from pathlib import Path

import pytest
from hypothesis import HealthCheck, Phase, settings

from app_factory import create_app
from soundpack.config.settings import AppSettings
from soundpack.domain.access_tokens import DownloadTokenService, PreviewTokenService
from soundpack.domain.asset_storage import AssetCatalog, TierKind
from tests.fixtures.assets import (
    DOMAIN,
    DOWNLOAD_SECRET,
    NOW_MS,
    PACKAGE_BYTES,
    PREVIEW_SECRET,
    SAMPLE_BYTES,
)
from tests.fixtures.fakes import (
    InMemorySubscriptionRepository,
    ManualClock,
    RecordingMailer,
    StaticTier,
)

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)
settings.load_profile("default")

# =============================================================================
# Token Fixtures
# =============================================================================

@pytest.fixture
def clock() -> ManualClock:
    """Provide a clock frozen at a fixed epoch-millisecond instant."""
    return ManualClock(NOW_MS)


@pytest.fixture
def catalog() -> AssetCatalog:
    return AssetCatalog()


@pytest.fixture
def preview_tokens(clock, catalog) -> PreviewTokenService:
    return PreviewTokenService(PREVIEW_SECRET, catalog.sample_names, clock=clock)


@pytest.fixture
def download_tokens(clock) -> DownloadTokenService:
    return DownloadTokenService(DOWNLOAD_SECRET, clock=clock)


# =============================================================================
# Storage and Collaborator Fixtures
# =============================================================================

@pytest.fixture
def remote_tier() -> StaticTier:
    """Provide a remote tier holding the package and one sample."""
    return StaticTier(
        "r2",
        assets={
            "tesla_sounds.zip": PACKAGE_BYTES,
            "samples/labubu1.mp3": SAMPLE_BYTES,
        },
    )


@pytest.fixture
def local_tier() -> StaticTier:
    """Provide a local tier holding every asset as a stream."""
    return StaticTier(
        "local",
        assets={
            "tesla_sounds.zip": PACKAGE_BYTES,
            "samples/labubu1.mp3": SAMPLE_BYTES,
            "samples/windows.mp3": SAMPLE_BYTES,
        },
        kind=TierKind.LOCAL,
    )


@pytest.fixture
def tiers(remote_tier, local_tier):
    return [remote_tier, local_tier]


@pytest.fixture
def repository() -> InMemorySubscriptionRepository:
    return InMemorySubscriptionRepository()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app_settings(tmp_path) -> AppSettings:
    """Provide settings with fixed secrets and local paths under tmp_path."""
    return AppSettings(
        preview_secret=PREVIEW_SECRET,
        download_secret=DOWNLOAD_SECRET,
        domain=DOMAIN,
        local_assets_dir=str(tmp_path / "assets"),
        local_package_path=str(tmp_path / "assets" / "tesla_sounds.zip"),
        local_samples_dir=str(tmp_path / "samples"),
    )


@pytest.fixture
def app(app_settings, tiers, repository, mailer, clock):
    """Create the Flask app through the factory with in-memory collaborators."""
    flask_app = create_app(
        settings=app_settings,
        tiers=tiers,
        repository=repository,
        mailer=mailer,
        clock=clock,
    )
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.container.clear_overrides()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


# =============================================================================
# Pytest Configuration Hooks
# =============================================================================

# Test directory -> (marker, description)
MARKERS = {
    "unit": ("unit", "Unit tests (fast, no external dependencies)"),
    "integration": ("integration", "Integration tests (filesystem, full app wiring)"),
    "contracts": ("contract", "Storage tier contract tests"),
    "property": ("property", "Property-based tests using Hypothesis"),
}


def pytest_configure(config):
    for marker, description in MARKERS.values():
        config.addinivalue_line("markers", f"{marker}: {description}")


def pytest_collection_modifyitems(config, items):
    """Mark each test after the tests/ subdirectory it lives in."""
    tests_root = Path(__file__).parent
    for item in items:
        try:
            top = Path(str(item.fspath)).relative_to(tests_root).parts[0]
        except (ValueError, IndexError):
            continue
        if top in MARKERS:
            item.add_marker(getattr(pytest.mark, MARKERS[top][0]))
