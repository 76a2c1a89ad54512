"""
Application Settings

Environment-driven configuration read once at start-up into an immutable
AppSettings object that is injected everywhere else.
"""

import logging
import os
import secrets
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from soundpack.domain.access_tokens import DEFAULT_DOWNLOAD_TTL_MS, DEFAULT_PREVIEW_TTL_MS
from soundpack.domain.asset_storage import (
    DEFAULT_PACKAGE_KEY,
    DEFAULT_SAMPLES_PREFIX,
    StorageTierDescriptor,
    TierKind,
)
from soundpack.domain.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TIER_ORDER = ("r2", "gcs")
DEFAULT_R2_BUCKET = "tesla-sounds"


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _tier_order(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return DEFAULT_TIER_ORDER
    order: List[str] = []
    for item in raw.split(","):
        name = item.strip().lower()
        if not name or name == TierKind.LOCAL.value:
            continue
        if name not in DEFAULT_TIER_ORDER:
            raise ConfigurationError(f"Unknown storage tier in STORAGE_TIER_ORDER: {name}")
        if name not in order:
            order.append(name)
    return tuple(order)


@dataclass(frozen=True)
class AppSettings:
    """Immutable application settings."""

    flask_env: str = "development"
    log_level: str = "INFO"

    # Capability tokens
    preview_secret: str = field(default="", repr=False)
    download_secret: str = field(default="", repr=False)
    preview_ttl_ms: int = DEFAULT_PREVIEW_TTL_MS
    download_ttl_ms: int = DEFAULT_DOWNLOAD_TTL_MS
    domain: str = "http://localhost:8000"

    # Storage chain
    tier_order: Tuple[str, ...] = DEFAULT_TIER_ORDER
    storage_timeout_seconds: float = 10.0
    package_key: str = DEFAULT_PACKAGE_KEY
    samples_prefix: str = DEFAULT_SAMPLES_PREFIX
    r2_account_id: Optional[str] = None
    r2_access_key_id: Optional[str] = field(default=None, repr=False)
    r2_secret_access_key: Optional[str] = field(default=None, repr=False)
    r2_bucket_name: str = DEFAULT_R2_BUCKET
    r2_endpoint_url: Optional[str] = None
    r2_public_url: Optional[str] = None
    gcs_bucket_name: Optional[str] = None
    gcs_credentials_path: Optional[str] = None
    gcs_public_url: Optional[str] = None
    local_assets_dir: str = "public/assets"
    local_package_path: str = "public/assets/tesla_sounds.zip"
    local_samples_dir: str = "secure/samples"

    # Redis / Celery
    redis_url: Optional[str] = None
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = field(default=None, repr=False)
    celery_broker_url: Optional[str] = None
    celery_result_backend: Optional[str] = None

    # Mail
    mail_url: Optional[str] = field(default=None, repr=False)
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = field(default=None, repr=False)
    from_email: Optional[str] = None
    mail_template_path: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.flask_env == "production"

    @property
    def r2_configured(self) -> bool:
        return bool(
            (self.r2_account_id or self.r2_endpoint_url)
            and self.r2_access_key_id
            and self.r2_secret_access_key
        )

    @property
    def gcs_configured(self) -> bool:
        return bool(self.gcs_bucket_name)

    @property
    def celery_enabled(self) -> bool:
        return bool(self.celery_broker_url)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppSettings":
        """
        Build settings from environment variables.

        Outside production a missing PREVIEW_SECRET is replaced by a random
        per-process secret, which invalidates outstanding tokens on restart.

        Raises:
            ConfigurationError: If a value is malformed, or a secret is missing
                in production
        """
        env = os.environ if environ is None else environ
        flask_env = env.get("FLASK_ENV", "development")

        preview_secret = env.get("PREVIEW_SECRET", "")
        if not preview_secret:
            if flask_env == "production":
                raise ConfigurationError("PREVIEW_SECRET must be set in production")
            preview_secret = secrets.token_hex(32)
            logger.warning(
                "PREVIEW_SECRET not set, using a random per-process secret. "
                "Tokens will not survive a restart."
            )
        download_secret = env.get("DOWNLOAD_SECRET") or preview_secret

        return cls(
            flask_env=flask_env,
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
            preview_secret=preview_secret,
            download_secret=download_secret,
            preview_ttl_ms=_int_env(env, "PREVIEW_TTL_MS", DEFAULT_PREVIEW_TTL_MS),
            download_ttl_ms=_int_env(env, "DOWNLOAD_TTL_MS", DEFAULT_DOWNLOAD_TTL_MS),
            domain=env.get("DOMAIN", "http://localhost:8000").rstrip("/"),
            tier_order=_tier_order(env.get("STORAGE_TIER_ORDER")),
            storage_timeout_seconds=_float_env(env, "STORAGE_TIMEOUT_SECONDS", 10.0),
            package_key=env.get("PACKAGE_KEY", DEFAULT_PACKAGE_KEY),
            samples_prefix=env.get("SAMPLES_PREFIX", DEFAULT_SAMPLES_PREFIX),
            r2_account_id=env.get("R2_ACCOUNT_ID") or None,
            r2_access_key_id=env.get("R2_ACCESS_KEY_ID") or None,
            r2_secret_access_key=env.get("R2_SECRET_ACCESS_KEY") or None,
            r2_bucket_name=env.get("R2_BUCKET_NAME", DEFAULT_R2_BUCKET),
            r2_endpoint_url=env.get("R2_ENDPOINT_URL") or None,
            r2_public_url=env.get("R2_PUBLIC_URL") or None,
            gcs_bucket_name=env.get("GCS_BUCKET_NAME") or None,
            gcs_credentials_path=env.get("GOOGLE_APPLICATION_CREDENTIALS") or None,
            gcs_public_url=env.get("GCS_PUBLIC_URL") or None,
            local_assets_dir=env.get("LOCAL_ASSETS_DIR", "public/assets"),
            local_package_path=env.get("LOCAL_PACKAGE_PATH", "public/assets/tesla_sounds.zip"),
            local_samples_dir=env.get("LOCAL_SAMPLES_DIR", "secure/samples"),
            redis_url=env.get("REDIS_URL") or None,
            redis_host=env.get("REDIS_HOST", "localhost"),
            redis_port=_int_env(env, "REDIS_PORT", 6379),
            redis_db=_int_env(env, "REDIS_DB", 0),
            redis_password=env.get("REDIS_PASSWORD") or None,
            celery_broker_url=env.get("CELERY_BROKER_URL") or None,
            celery_result_backend=env.get("CELERY_RESULT_BACKEND") or None,
            mail_url=env.get("MAIL_URL") or None,
            smtp_host=env.get("SMTP_HOST") or None,
            smtp_port=_int_env(env, "SMTP_PORT", 587),
            smtp_user=env.get("SMTP_USER") or None,
            smtp_pass=env.get("SMTP_PASS") or None,
            from_email=env.get("FROM_EMAIL") or None,
            mail_template_path=env.get("MAIL_TEMPLATE_PATH") or None,
        )

    def tier_descriptors(self) -> List[StorageTierDescriptor]:
        """
        Descriptors for every configured tier in resolution order.

        Remote tiers follow tier_order and are included only when configured.
        The local tier is always last.
        """
        descriptors: List[StorageTierDescriptor] = []
        for name in self.tier_order:
            if name == TierKind.R2.value and self.r2_configured:
                descriptors.append(StorageTierDescriptor(
                    kind=TierKind.R2,
                    name="r2",
                    bucket=self.r2_bucket_name,
                    endpoint_url=self.r2_endpoint_url,
                    account_id=self.r2_account_id,
                    access_key_id=self.r2_access_key_id,
                    secret_access_key=self.r2_secret_access_key,
                    public_base_url=self.r2_public_url,
                    timeout_seconds=self.storage_timeout_seconds,
                ))
            elif name == TierKind.GCS.value and self.gcs_configured:
                descriptors.append(StorageTierDescriptor(
                    kind=TierKind.GCS,
                    name="gcs",
                    bucket=self.gcs_bucket_name,
                    credentials_path=self.gcs_credentials_path,
                    public_base_url=self.gcs_public_url,
                    timeout_seconds=self.storage_timeout_seconds,
                ))

        descriptors.append(StorageTierDescriptor(
            kind=TierKind.LOCAL,
            name="local",
            root_path=self.local_assets_dir,
            package_path=self.local_package_path,
            package_key=self.package_key,
            samples_path=self.local_samples_dir,
            samples_prefix=self.samples_prefix,
        ))
        return descriptors
