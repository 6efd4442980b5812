"""
Application Factory

Creates and configures the Flask application with all dependencies:
router and route table, signer, access policy, translator, slot broker and
the supervisor that runs one broker process per served host.
"""

import logging
import os
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from upload_broker.application.broker_supervisor import BrokerSupervisor
from upload_broker.application.dependency_container import DependencyContainer
from upload_broker.application.event_publisher import EventPublisher, create_default_publisher
from upload_broker.application.hooks import HookRegistry
from upload_broker.application.slot_broker import SlotBroker
from upload_broker.config.broker_config import BrokerSettings
from upload_broker.config.redis_config import get_redis_repository, init_redis, redis_health_check
from upload_broker.domain.access import IAccessPolicy
from upload_broker.domain.protocol.translator import ITranslator
from upload_broker.domain.routing import IRouteTable
from upload_broker.domain.upload_slots import IUrlSigner, SlotIssuer
from upload_broker.infrastructure.gettext_translator import GettextTranslator
from upload_broker.infrastructure.message_router import MessageRouter
from upload_broker.infrastructure.route_tables import InMemoryRouteTable, RedisRouteTable
from upload_broker.infrastructure.rule_access_policy import RuleBasedAccessPolicy
from upload_broker.infrastructure.sigv4_url_signer import SigV4UrlSigner

logger = logging.getLogger(__name__)


class AppConfig:
    """Application configuration."""

    def __init__(self, settings: Optional[BrokerSettings] = None):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.worker_threads = int(os.getenv("WORKER_THREADS", 8))

        # Broker settings are loaded eagerly so invalid options fail at startup
        self.settings = settings if settings is not None else BrokerSettings.from_env()


def create_app(config: Optional[AppConfig] = None,
               container: Optional[DependencyContainer] = None,
               start_brokers: bool = True) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        container: Pre-populated container; registrations already present
            (e.g. test doubles) are kept
        start_brokers: Start a broker for every served host

    Returns:
        Configured Flask application

    Raises:
        ConfigurationError: If the broker settings are invalid
        RouteRegistrationError: If a served host's addresses cannot be registered
    """
    if config is None:
        config = AppConfig()

    # Create Flask app
    app = Flask(__name__)

    # Configure CORS
    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization"],
                "expose_headers": ["Content-Type"],
                "max_age": 3600,
            }
        },
    )

    # Initialize services
    _initialize_services(app, config, container or DependencyContainer())

    # Start brokers for the served hosts
    if start_brokers:
        _start_brokers(app, config)

    # Register blueprints
    _register_blueprints(app, config)

    # Register health check endpoint
    _register_health_endpoint(app, config)

    return app


def _register_default(container: DependencyContainer, interface, factory) -> None:
    if not container.is_registered(interface):
        container.register_factory(interface, factory)


def _initialize_services(app: Flask, config: AppConfig,
                         container: DependencyContainer) -> None:
    """
    Register every collaborator in the container and attach it to the app.

    Args:
        app: Flask application
        config: Application configuration
        container: Dependency container to populate
    """
    settings = config.settings
    container.register_singleton(BrokerSettings, settings)

    _register_default(container, EventPublisher, create_default_publisher)
    _register_default(container, HookRegistry, HookRegistry)
    _register_default(
        container, Executor,
        lambda: ThreadPoolExecutor(max_workers=config.worker_threads,
                                   thread_name_prefix="upload-broker"),
    )
    _register_default(container, IRouteTable, lambda: _create_route_table(settings))
    _register_default(
        container, MessageRouter, lambda: MessageRouter(container.resolve(IRouteTable))
    )
    _register_default(container, IUrlSigner, SigV4UrlSigner)
    _register_default(
        container, IAccessPolicy,
        lambda: RuleBasedAccessPolicy(settings.access_rules, local_hosts=settings.served_hosts),
    )
    _register_default(
        container, ITranslator, lambda: GettextTranslator(settings.translations_dir)
    )

    executor = container.resolve(Executor)
    publisher = container.resolve(EventPublisher)

    _register_default(
        container, SlotBroker,
        lambda: SlotBroker(
            SlotIssuer(container.resolve(IUrlSigner)),
            container.resolve(IAccessPolicy),
            container.resolve(ITranslator),
            hooks=container.resolve(HookRegistry),
            publisher=publisher,
            policy_timeout=settings.policy_timeout,
            executor=executor,
        ),
    )
    _register_default(
        container, BrokerSupervisor,
        lambda: BrokerSupervisor(
            container.resolve(MessageRouter),
            container.resolve(SlotBroker),
            publisher=publisher,
            router_timeout=settings.router_timeout,
            executor=executor,
        ),
    )

    # Attach container to Flask app context
    app.container = container
    app.supervisor = container.resolve(BrokerSupervisor)

    logger.info(
        f"Application services initialized "
        f"(route table: {settings.route_table}, served hosts: {list(settings.served_hosts)})"
    )


def _create_route_table(settings: BrokerSettings) -> IRouteTable:
    if settings.route_table == "redis":
        init_redis()
        return RedisRouteTable(get_redis_repository())
    return InMemoryRouteTable()


def _start_brokers(app: Flask, config: AppConfig) -> None:
    """Start one broker per served host; any failure aborts startup."""
    settings = config.settings
    for host in settings.served_hosts:
        app.supervisor.start(host, settings.module_options)
        logger.info(f"Upload broker started for {host}")


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    """
    Register API blueprints.

    Args:
        app: Flask application
        config: Application configuration
    """
    from upload_broker.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _get_health_status(app: Flask, config: AppConfig) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Redis is only checked when it backs the route table.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "broker ready",
        "route_table": config.settings.route_table,
        "redis": "not_configured",
        "hosts": sorted(app.supervisor.hosts()),
    }

    if config.settings.route_table == "redis":
        try:
            if redis_health_check():
                health_status["redis"] = "connected"
            else:
                health_status["redis"] = "disconnected"
                health_status["status"] = "degraded"
        except Exception as e:
            health_status["redis"] = f"error: {str(e)}"
            health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask, config: AppConfig) -> None:
    """
    Register health check endpoint.

    Args:
        app: Flask application
        config: Application configuration
    """

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application and its dependencies.
        """
        health_status, status_code = _get_health_status(app, config)
        return jsonify(health_status), status_code
