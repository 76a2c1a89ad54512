"""
Application Factory

Creates and configures the Flask application with all dependencies.
Collaborators can be injected for tests; everything else is built from
AppSettings.
"""

import logging
import sys
from typing import List, Optional

from flask import Flask, jsonify
from flask_cors import CORS

from soundpack.api.cli import register_commands
from soundpack.application.access_gate import AccessGate
from soundpack.application.audit_service import AuditService
from soundpack.application.delivery import DeliveryAdapter
from soundpack.application.dependency_container import DependencyContainer
from soundpack.application.event_publisher import EventPublisher
from soundpack.application.fulfillment_service import FulfillmentService
from soundpack.application.task_dispatcher import TaskDispatcher
from soundpack.config.celery_config import make_celery
from soundpack.config.redis_config import get_redis_repository, init_redis, redis_health_check
from soundpack.config.settings import AppSettings
from soundpack.domain.access_tokens import Clock, DownloadTokenService, PreviewTokenService, system_clock
from soundpack.domain.asset_storage import (
    AssetCatalog,
    DownloadLinkResolver,
    IStorageTier,
    StorageResolver,
)
from soundpack.domain.notifications import IMailTransport
from soundpack.domain.subscriptions import ISubscriptionRepository
from soundpack.infrastructure.apprise_mailer import AppriseMailer, build_smtp_url
from soundpack.infrastructure.redis_subscription_repository import RedisSubscriptionRepository
from soundpack.infrastructure.storage_factory import StorageFactory

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging with a single stream handler.

    Chatty client libraries are capped at WARNING.
    """
    logging.basicConfig(stream=sys.stdout, format=LOG_FORMAT)
    logging.getLogger().setLevel(getattr(logging, level.upper(), logging.INFO))

    for noisy in ("botocore", "boto3", "urllib3", "apprise", "google.auth"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def create_app(
    settings: Optional[AppSettings] = None,
    tiers: Optional[List[IStorageTier]] = None,
    repository: Optional[ISubscriptionRepository] = None,
    mailer: Optional[IMailTransport] = None,
    clock: Clock = system_clock,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        settings: Application settings, read from the environment if None
        tiers: Storage tiers in resolution order, built from settings if None
        repository: Subscription store, Redis-backed if None
        mailer: Mail transport, Apprise-backed if None
        clock: Epoch-millisecond clock for the token services

    Returns:
        Configured Flask application
    """
    if settings is None:
        settings = AppSettings.from_env()

    configure_logging(settings.log_level)

    app = Flask(__name__)
    app.settings = settings

    CORS(
        app,
        resources={
            r"/preview-url": {"origins": settings.domain},
            r"/preview-list": {"origins": settings.domain},
        },
    )

    _initialize_infrastructure(app, settings, repository)
    _initialize_services(app, settings, tiers, mailer, clock)
    _register_blueprints(app)
    register_commands(app)
    _register_health_endpoint(app)

    return app


def _initialize_infrastructure(
    app: Flask, settings: AppSettings, repository: Optional[ISubscriptionRepository]
) -> None:
    """
    Initialize Redis and, when a broker is configured, Celery.

    Args:
        app: Flask application
        settings: Application settings
        repository: Injected subscription store, skips Redis when given
    """
    if repository is None:
        init_redis(settings)
        repository = RedisSubscriptionRepository(get_redis_repository("soundpack"))
    app.subscription_repository = repository

    app.celery = None
    if settings.celery_enabled:
        app.celery = make_celery(app, settings.celery_broker_url, settings.celery_result_backend)
        logger.info("Celery initialized")
    else:
        logger.info("CELERY_BROKER_URL not set, background work runs in-process")


def _build_mailer(settings: AppSettings) -> IMailTransport:
    base_url = settings.mail_url
    if not base_url and settings.smtp_host:
        base_url = build_smtp_url(
            settings.smtp_host,
            settings.smtp_port,
            settings.smtp_user,
            settings.smtp_pass,
            settings.from_email,
        )
    if not base_url:
        logger.warning("No mail transport configured, welcome mails will fail")
    return AppriseMailer(base_url)


def _initialize_services(
    app: Flask,
    settings: AppSettings,
    tiers: Optional[List[IStorageTier]],
    mailer: Optional[IMailTransport],
    clock: Clock,
) -> None:
    """
    Build every service and register it in the DependencyContainer.

    The container is the only way API routes and Celery tasks reach services.
    """
    container = DependencyContainer()

    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)

    catalog = AssetCatalog(
        package_key=settings.package_key,
        samples_prefix=settings.samples_prefix,
    )
    preview_tokens = PreviewTokenService(
        settings.preview_secret,
        catalog.sample_names,
        default_ttl_ms=settings.preview_ttl_ms,
        clock=clock,
    )
    download_tokens = DownloadTokenService(
        settings.download_secret,
        default_ttl_ms=settings.download_ttl_ms,
        clock=clock,
    )

    if tiers is None:
        tiers = StorageFactory.create_tiers(settings)
    resolver = StorageResolver(tiers)
    link_resolver = DownloadLinkResolver(
        resolver,
        download_tokens,
        settings.domain,
        catalog.package_key,
        catalog.package_filename,
    )

    repository = app.subscription_repository
    mailer = mailer or _build_mailer(settings)
    dispatcher = TaskDispatcher(app.celery)
    audit_service = AuditService(repository)
    fulfillment = FulfillmentService(
        repository,
        mailer,
        link_resolver,
        event_publisher,
        template_path=settings.mail_template_path,
        download_ttl_ms=settings.download_ttl_ms,
    )
    gate = AccessGate(
        preview_tokens,
        download_tokens,
        resolver,
        catalog,
        dispatcher,
        audit_service,
        event_publisher,
        settings.domain,
    )

    container.register_singleton(AppSettings, settings)
    container.register_singleton(EventPublisher, event_publisher)
    container.register_singleton(AssetCatalog, catalog)
    container.register_singleton(PreviewTokenService, preview_tokens)
    container.register_singleton(DownloadTokenService, download_tokens)
    container.register_singleton(StorageResolver, resolver)
    container.register_singleton(DownloadLinkResolver, link_resolver)
    container.register_singleton(ISubscriptionRepository, repository)
    container.register_singleton(IMailTransport, mailer)
    container.register_singleton(TaskDispatcher, dispatcher)
    container.register_singleton(AuditService, audit_service)
    container.register_singleton(FulfillmentService, fulfillment)
    container.register_singleton(AccessGate, gate)
    container.register_singleton(DeliveryAdapter, DeliveryAdapter())

    app.container = container
    logger.info(
        f"Services initialized: {container.registration_count} registrations, "
        f"tiers={[tier.name for tier in resolver.tiers]}"
    )


def _register_blueprints(app: Flask) -> None:
    from soundpack.api import api_bp

    app.register_blueprint(api_bp)


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    resolver = app.container.resolve(StorageResolver)
    health_status = {
        "status": "ok",
        "storage": resolver.summary(),
        "redis": "unknown",
        "celery": "available" if app.celery is not None else "not_configured",
    }

    if not isinstance(app.subscription_repository, RedisSubscriptionRepository):
        health_status["redis"] = "not_used"
    elif redis_health_check():
        health_status["redis"] = "connected"
    else:
        health_status["redis"] = "disconnected"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        """Overall health of the application and its dependencies."""
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
