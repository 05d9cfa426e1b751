"""
Exception hierarchy for the release engine.

Three families, each handled differently by callers:

    UpstreamError    → an external collaborator failed (values provider,
                       registry, stores).  Propagated on the promotion
                       path, logged and swallowed on the notification path.
    PolicyViolation  → the request is refused by a business rule (locked
                       product version, incompatible release, access
                       denied).  Surface as 4xx, never retry.
    ConfigError      → release.yml is invalid (see core.config.loader).

Malformed version strings are never an error — see services.versioning.
"""

from __future__ import annotations


class ReleaseTrainError(Exception):
    """Base class for all engine errors."""


# ── Upstream I/O ────────────────────────────────────────────────


class UpstreamError(ReleaseTrainError):
    """An external collaborator call failed."""


class ChartValuesError(UpstreamError):
    """The chart values provider could not return a values document."""


class ChartValuesDecodeError(UpstreamError):
    """The values document could not be decoded as a mapping."""


class RegistryError(UpstreamError):
    """The container registry could not list tags."""


class StoreError(UpstreamError):
    """A product / webhook store operation failed."""


class NotFoundError(StoreError):
    """The requested entity does not exist."""


# ── Policy ──────────────────────────────────────────────────────


class PolicyViolation(ReleaseTrainError):
    """The operation is rejected by policy, not by a fault."""

    status_code = 400


class ProductVersionLockedError(PolicyViolation):
    """Mutation attempted on a locked product version."""

    def __init__(self, product_version_id: int) -> None:
        self.product_version_id = product_version_id
        super().__init__(f"Product version {product_version_id} is locked")


class ReleaseValidationError(PolicyViolation):
    """A service tag does not belong to the product version's major line."""

    def __init__(self, service_version: str, product_version: str) -> None:
        self.service_version = service_version
        self.product_version = product_version
        super().__init__(
            f"Service version {service_version!r} is not compatible "
            f"with product version {product_version!r}"
        )


class AccessDeniedError(PolicyViolation):
    """The authorization collaborator refused the operation."""

    status_code = 401
