"""
In-memory collaborators — test doubles and offline (mock-mode) bindings.

Every double records its calls so tests can assert how often the engine
reached out (e.g. that a cached chart never hits the values provider
twice).  Failures are injected with ``set_failure``.
"""

from __future__ import annotations

import itertools
import json
import threading
from datetime import datetime
from typing import Any

from release_train.adapters.base import (
    ChartValuesProvider,
    ProductStore,
    RegistryClient,
    WebHookSender,
    WebHookStore,
)
from release_train.core.errors import (
    ChartValuesError,
    NotFoundError,
    RegistryError,
    StoreError,
)
from release_train.core.models.release import (
    Product,
    ProductVersion,
    ProductVersionService,
    TagInfo,
    WebHook,
)


class MockValuesProvider(ChartValuesProvider):
    """Serves values documents from a dict keyed by chart name."""

    def __init__(self, documents: dict[str, bytes | dict] | None = None) -> None:
        self._documents: dict[str, bytes] = {}
        self._failure: str | None = None
        self.call_log: list[tuple[str, str]] = []
        for name, doc in (documents or {}).items():
            self.set_values(name, doc)

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def set_values(self, chart_name: str, document: bytes | dict) -> None:
        if isinstance(document, dict):
            document = json.dumps(document).encode("utf-8")
        self._documents[chart_name] = document

    def set_failure(self, error: str = "Mock values failure") -> None:
        self._failure = error

    def get_values(self, chart_name: str, chart_version: str) -> bytes:
        self.call_log.append((chart_name, chart_version))
        if self._failure is not None:
            raise ChartValuesError(self._failure)
        if chart_name not in self._documents:
            raise ChartValuesError(f"Chart {chart_name} not found")
        return self._documents[chart_name]


class MockRegistryClient(RegistryClient):
    """Serves tags from a dict keyed by image repository."""

    def __init__(self, tags: dict[str, list[TagInfo]] | None = None) -> None:
        self._tags: dict[str, list[TagInfo]] = dict(tags or {})
        self._failure: str | None = None
        self.call_log: list[str] = []

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def add_tag(self, image_repository: str, tag: str, created: datetime) -> None:
        self._tags.setdefault(image_repository, []).append(TagInfo(tag=tag, created=created))

    def set_failure(self, error: str = "Mock registry failure") -> None:
        self._failure = error

    def list_tags_with_creation_date(self, image_repository: str) -> list[TagInfo]:
        self.call_log.append(image_repository)
        if self._failure is not None:
            raise RegistryError(self._failure)
        return list(self._tags.get(image_repository, []))


class InMemoryProductStore(ProductStore):
    """Products, product versions and services held in dicts."""

    def __init__(self) -> None:
        self.products: dict[int, Product] = {}
        self.product_versions: dict[int, ProductVersion] = {}
        self.services: dict[int, ProductVersionService] = {}
        self._ids = itertools.count(1)
        self._failures: dict[str, str] = {}
        self.calls: dict[str, int] = {}

    def set_failure(self, operation: str, error: str = "Mock store failure") -> None:
        """Make ``operation`` (a method name) raise ``StoreError``."""
        self._failures[operation] = error

    def _enter(self, operation: str) -> None:
        self.calls[operation] = self.calls.get(operation, 0) + 1
        if operation in self._failures:
            raise StoreError(self._failures[operation])

    def _next_id(self, requested: int) -> int:
        return requested or next(self._ids)

    # ── Seeding ──────────────────────────────────────────────────

    def add_product(self, product: Product) -> Product:
        product = product.model_copy(update={"id": self._next_id(product.id)})
        self.products[product.id] = product
        return product

    def add_product_version(self, product_version: ProductVersion) -> ProductVersion:
        product_version = product_version.model_copy(update={"id": self._next_id(product_version.id)})
        self.product_versions[product_version.id] = product_version
        return product_version

    def add_service(self, service: ProductVersionService) -> ProductVersionService:
        service = service.model_copy(update={"id": self._next_id(service.id)})
        self.services[service.id] = service
        return service

    # ── ProductStore ─────────────────────────────────────────────

    def find_product_by_id(self, product_id: int) -> Product:
        self._enter("find_product_by_id")
        try:
            return self.products[product_id]
        except KeyError:
            raise NotFoundError(f"Product {product_id} not found") from None

    def get_product_version(self, product_version_id: int) -> ProductVersion:
        self._enter("get_product_version")
        try:
            return self.product_versions[product_version_id]
        except KeyError:
            raise NotFoundError(f"Product version {product_version_id} not found") from None

    def list_product_versions(self, product_id: int) -> list[ProductVersion]:
        self._enter("list_product_versions")
        return [pv for pv in self.product_versions.values() if pv.product_id == product_id]

    def create_product_version_copying(self, product_version: ProductVersion) -> int:
        self._enter("create_product_version_copying")
        previous = sorted(
            (pv for pv in self.product_versions.values() if pv.product_id == product_version.product_id),
            key=lambda pv: pv.id,
        )
        created = self.add_product_version(product_version.model_copy(update={"id": 0}))
        if product_version.copy_latest_release and previous:
            for service in self._services_of(previous[-1].id):
                self.add_service(service.model_copy(update={"id": 0, "product_version_id": created.id}))
        return created.id

    def edit_product_version(self, product_version: ProductVersion) -> None:
        self._enter("edit_product_version")
        self.product_versions[product_version.id] = product_version

    def delete_product_version(self, product_version_id: int) -> None:
        self._enter("delete_product_version")
        self.product_versions.pop(product_version_id, None)

    def _services_of(self, product_version_id: int) -> list[ProductVersionService]:
        return [s for s in self.services.values() if s.product_version_id == product_version_id]

    def list_product_version_services(self, product_version_id: int) -> list[ProductVersionService]:
        self._enter("list_product_version_services")
        return self._services_of(product_version_id)

    def get_product_version_service(self, service_id: int) -> ProductVersionService:
        self._enter("get_product_version_service")
        try:
            return self.services[service_id]
        except KeyError:
            raise NotFoundError(f"Service {service_id} not found") from None

    def create_product_version_service(self, service: ProductVersionService) -> int:
        self._enter("create_product_version_service")
        return self.add_service(service).id

    def edit_product_version_service(self, service: ProductVersionService) -> None:
        self._enter("edit_product_version_service")
        self.services[service.id] = service

    def delete_product_version_service(self, service_id: int) -> None:
        self._enter("delete_product_version_service")
        self.services.pop(service_id, None)


class InMemoryWebHookStore(WebHookStore):
    """Webhook registrations held in a list."""

    def __init__(self, hooks: list[WebHook] | None = None) -> None:
        self.hooks = list(hooks or [])
        self._failure: str | None = None
        self.call_log: list[tuple[int, str]] = []

    def set_failure(self, error: str = "Mock webhook store failure") -> None:
        self._failure = error

    def list_by_environment_and_type(self, environment_id: int, event_type: str) -> list[WebHook]:
        self.call_log.append((environment_id, event_type))
        if self._failure is not None:
            raise StoreError(self._failure)
        return [h for h in self.hooks if h.environment_id == environment_id and h.type == event_type]


class RecordingWebHookSender(WebHookSender):
    """Records deliveries; URLs in ``failing_urls`` raise instead."""

    def __init__(self, failing_urls: set[str] | None = None) -> None:
        self.failing_urls = set(failing_urls or ())
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self._lock = threading.Lock()

    def send(self, url: str, payload: dict[str, Any]) -> None:
        if url in self.failing_urls:
            raise ConnectionError(f"Mock delivery failure for {url}")
        with self._lock:
            self.sent.append((url, payload))
