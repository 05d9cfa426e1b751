"""
Release-train entities — products, product versions and their services.

These mirror the rows owned by the external persistence layer.  The
engine reads them and hands modified copies back to the stores; it
never persists anything itself.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator


class Product(BaseModel):
    """A deliverable made of several services."""

    id: int = 0
    name: str
    validate_releases: bool = True


class ProductVersion(BaseModel):
    """A release of a product — the baseline all its services compare to.

    While ``locked`` is set, none of the version's services may be
    created, edited or deleted.
    """

    id: int = 0
    product_id: int
    version: str
    locked: bool = False
    hotfix: bool = False
    date: str = ""
    copy_latest_release: bool = False


class ProductVersionService(BaseModel):
    """One service (chart + image tag) pinned in a product version."""

    id: int = 0
    product_version_id: int
    service_name: str                  # chart reference, "repo/chart - 0.1.0"
    docker_image_tag: str = ""
    latest_version: str = ""           # promotable tag, filled on listing
    chart_latest_version: str = ""     # newer chart version, filled on listing
    notes: str = ""


class WebHook(BaseModel):
    """Outbound notification registration."""

    id: int = 0
    name: str = ""
    type: str
    url: str
    environment_id: int = -1


class TagInfo(BaseModel):
    """A registry tag with its creation time."""

    tag: str
    created: datetime

    @field_validator("created")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Naive timestamps are UTC, so all tags compare."""
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class ChartSearchResult(BaseModel):
    """One row of a chart repository search."""

    name: str
    chart_version: str
    app_version: str = ""
    description: str = ""


class Principal(BaseModel):
    """The authenticated caller, as seen by the authorization collaborator."""

    email: str = ""
    roles: list[str] = Field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles


class ServiceReleaseContext(BaseModel):
    """Operands of a single promotion decision (built per request)."""

    chart_reference: str
    current_service_version: str
    product_version_baseline: str
    is_hotfix_train: bool = False

    @classmethod
    def for_service(
        cls,
        service: ProductVersionService,
        product_version: ProductVersion,
    ) -> ServiceReleaseContext:
        """Build the context for a service pinned in a product version."""
        return cls(
            chart_reference=service.service_name,
            current_service_version=service.docker_image_tag,
            product_version_baseline=product_version.version,
            is_hotfix_train=product_version.hotfix,
        )
