"""Test configuration and fixtures."""

import pytest
from fakes import FakeEngine
from prometheus_client import CollectorRegistry

from devstack_net.config import Settings
from devstack_net.utils.metrics_collector import MetricsCollector


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings rooted in a temporary directory."""
    return Settings(
        _env_file=None,
        user_conf_root=tmp_path / "conf",
        engine_scripts_dir=tmp_path / "scripts",
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector with its own registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def engine() -> FakeEngine:
    """Empty in-memory engine."""
    return FakeEngine()
