"""
Collaborator contracts — what the engine consumes from the outside.

The engine only talks to registries, Helm, stores and webhook endpoints
through these abstract classes.  Concrete bindings live next to this
module (helm.py, registry.py, webhook.py); in-memory doubles live in
mock.py.

Unlike the engine's own decisions, collaborators DO raise: failures
surface as ``UpstreamError`` subclasses (see core.errors) so that the
promotion path can propagate them and the notification path can log
and drop them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from release_train.core.models.release import (
    Principal,
    Product,
    ProductVersion,
    ProductVersionService,
    TagInfo,
    WebHook,
)


class ChartValuesProvider(ABC):
    """Source of a chart's default values document."""

    @abstractmethod
    def get_values(self, chart_name: str, chart_version: str) -> bytes:
        """Return the serialized values (YAML or JSON).

        ``chart_version`` may be empty, meaning "latest".

        Raises:
            ChartValuesError: If the document cannot be fetched.
        """


class RegistryClient(ABC):
    """Container registry tag listing."""

    @abstractmethod
    def list_tags_with_creation_date(self, image_repository: str) -> list[TagInfo]:
        """List every tag of ``image_repository`` with its creation time.

        Raises:
            RegistryError: On any registry failure.
        """


class ProductStore(ABC):
    """Persistence of products, product versions and their services."""

    @abstractmethod
    def find_product_by_id(self, product_id: int) -> Product:
        """Raises NotFoundError / StoreError."""

    @abstractmethod
    def get_product_version(self, product_version_id: int) -> ProductVersion:
        """Raises NotFoundError / StoreError."""

    @abstractmethod
    def list_product_versions(self, product_id: int) -> list[ProductVersion]: ...

    @abstractmethod
    def create_product_version_copying(self, product_version: ProductVersion) -> int:
        """Create a product version, copying the services of the previous
        one when ``copy_latest_release`` is set.  Returns the new id."""

    @abstractmethod
    def edit_product_version(self, product_version: ProductVersion) -> None: ...

    @abstractmethod
    def delete_product_version(self, product_version_id: int) -> None: ...

    @abstractmethod
    def list_product_version_services(
        self, product_version_id: int,
    ) -> list[ProductVersionService]: ...

    @abstractmethod
    def get_product_version_service(self, service_id: int) -> ProductVersionService: ...

    @abstractmethod
    def create_product_version_service(self, service: ProductVersionService) -> int: ...

    @abstractmethod
    def edit_product_version_service(self, service: ProductVersionService) -> None: ...

    @abstractmethod
    def delete_product_version_service(self, service_id: int) -> None: ...


class WebHookStore(ABC):
    """Read access to webhook registrations."""

    @abstractmethod
    def list_by_environment_and_type(
        self, environment_id: int, event_type: str,
    ) -> list[WebHook]:
        """Raises StoreError."""


class WebHookSender(ABC):
    """Outbound delivery of one webhook call."""

    @abstractmethod
    def send(self, url: str, payload: dict[str, Any]) -> None:
        """POST ``payload`` to ``url``.  Raises on failure."""


class Authorizer(ABC):
    """Verdict on whether a principal may perform an operation."""

    @abstractmethod
    def is_allowed(self, principal: Principal, operation: str) -> bool: ...
