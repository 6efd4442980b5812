"""
Shared fixtures for integration tests: a factory-built application with
threaded brokers, and a real Redis client when one is reachable.
"""

import os

import pytest
import redis

from app_factory import AppConfig, create_app
from tests.fixtures.builders import MODULE_OPTIONS
from tests.fixtures.fakes import FixedSigner
from upload_broker.application.dependency_container import DependencyContainer
from upload_broker.config.broker_config import BrokerSettings, UploadModuleOptions
from upload_broker.domain.upload_slots import IUrlSigner


@pytest.fixture
def settings():
    return BrokerSettings(
        served_hosts=("example.com",),
        module_options=UploadModuleOptions.from_mapping(MODULE_OPTIONS),
        exchange_timeout=5.0,
    )


@pytest.fixture
def container():
    """Container pre-seeded with a signer that needs no credentials."""
    container = DependencyContainer()
    container.register_singleton(IUrlSigner, FixedSigner())
    return container


@pytest.fixture
def app(settings, container):
    app = create_app(AppConfig(settings), container=container)
    app.config["TESTING"] = True
    yield app
    app.supervisor.stop_all(timeout=5)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def redis_client():
    """
    Yields a clean Redis client, or skips when no server is reachable.
    """
    client = redis.Redis(
        host=os.getenv("REDIS_HOST", "localhost"),
        port=int(os.getenv("REDIS_PORT", 6379)),
        db=int(os.getenv("REDIS_TEST_DB", 15)),
        decode_responses=False,
    )

    try:
        client.ping()
    except redis.ConnectionError:
        pytest.skip("Redis service not available. Skipping integration tests.")

    client.flushdb()
    yield client
    client.flushdb()
    client.close()
