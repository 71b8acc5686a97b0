"""Project-level pytest configuration and shared fixtures."""

import os
from unittest import mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from feed_ingestor.monitoring.metrics import PrometheusExporter

INGESTOR_ENV_VARS = [
    "GITHUB_TOKEN",
    "STACKEXCHANGE_KEY",
    "PORT",
    "METRICS_PORT",
    "PG_HOST",
    "PG_PORT",
    "PG_DB",
    "PG_QUESTIONS_DB",
    "PG_USER",
    "PG_PASSWORD",
]


@pytest.fixture(autouse=True)
def isolated_environment():
    """Run every test without ingestor variables and restore os.environ afterwards."""
    with mock.patch.dict(os.environ):
        for name in INGESTOR_ENV_VARS:
            os.environ.pop(name, None)
        yield


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture
def exporter():
    """Exporter with its own registry; the HTTP server is never started."""
    return PrometheusExporter(port=0)
