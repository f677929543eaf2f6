"""Shared fixtures for service handler tests."""

import pytest
import structlog

from hello_services.runtime import Settings

from .helpers import fixed_clock, fixed_hostname


@pytest.fixture
def plain_settings() -> Settings:
    return Settings(_env_file=None, greeting_mode="plain")


@pytest.fixture
def detailed_settings() -> Settings:
    return Settings(_env_file=None, greeting_mode="detailed")


@pytest.fixture
def default_settings() -> Settings:
    return Settings(_env_file=None, greeting_mode=None)


@pytest.fixture
def build_client():
    """Return a factory that wraps a service module's app in a TestClient."""

    from fastapi.testclient import TestClient

    def _build(service_module, settings: Settings) -> TestClient:
        application = service_module.create_app(
            settings=settings,
            hostname_provider=fixed_hostname,
            clock=fixed_clock,
        )
        return TestClient(application)

    return _build


@pytest.fixture
def reset_structlog():
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()
