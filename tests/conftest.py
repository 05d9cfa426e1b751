"""
Shared test fixtures and configuration.
"""

from datetime import UTC, datetime, timedelta

import pytest

from release_train.adapters.mock import (
    InMemoryProductStore,
    InMemoryWebHookStore,
    MockRegistryClient,
    MockValuesProvider,
    RecordingWebHookSender,
)
from release_train.core.models.release import TagInfo
from release_train.core.observability.metrics import MetricsRegistry

EPOCH = datetime(2019, 1, 1, tzinfo=UTC)


def _tags(*names: str) -> list[TagInfo]:
    return [TagInfo(tag=name, created=EPOCH + timedelta(minutes=i)) for i, name in enumerate(names)]


@pytest.fixture
def make_tags():
    """Build tags created one minute apart; the last one is the newest."""
    return _tags


@pytest.fixture
def registry() -> MetricsRegistry:
    """A fresh metrics registry."""
    return MetricsRegistry()


@pytest.fixture
def values_provider() -> MockValuesProvider:
    """Values provider serving one chart, ``repo/my-chart``."""
    return MockValuesProvider({"repo/my-chart": {"image": {"repository": "registry.example.com/org/api"}}})


@pytest.fixture
def registry_client() -> MockRegistryClient:
    return MockRegistryClient()


@pytest.fixture
def product_store() -> InMemoryProductStore:
    return InMemoryProductStore()


@pytest.fixture
def webhook_store() -> InMemoryWebHookStore:
    return InMemoryWebHookStore()


@pytest.fixture
def sender() -> RecordingWebHookSender:
    return RecordingWebHookSender()
