"""
Shared fixtures: scripted gateway and signer, a recording sleep, and a
private metrics registry per test.
"""

import pytest

from biochain_client.config import ClientConfig, PollerConfig, SessionConfig, SubmitterConfig
from biochain_client.monitoring.metrics import MetricsRegistry

from helpers import MockGateway, MockSigner, RecordingSleep


@pytest.fixture
def gateway():
    return MockGateway()


@pytest.fixture
def signer():
    return MockSigner()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def metrics():
    return MetricsRegistry()


@pytest.fixture
def fast_config():
    """Client configuration with short timers and no background liveness loop."""
    return ClientConfig(
        submitter=SubmitterConfig(),
        poller=PollerConfig(interval=0.01, default_timeout=0.2),
        session=SessionConfig(liveness_interval=0),
    )
