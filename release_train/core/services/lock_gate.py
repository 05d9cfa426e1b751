"""
Product-version lock gate.

A product version is either Unlocked or Locked; lock and unlock are
the only transitions.  While locked, its services cannot be created,
edited or deleted — such attempts are policy violations (4xx), not
faults.  Locking and unlocking themselves need the same admin verdict
as any other administrative mutation.
"""

from __future__ import annotations

import logging

from release_train.adapters.base import Authorizer
from release_train.core.errors import AccessDeniedError, ProductVersionLockedError
from release_train.core.models.release import Principal, ProductVersion

logger = logging.getLogger(__name__)

OP_LOCK = "product_version:lock"
OP_UNLOCK = "product_version:unlock"


class ProductVersionLockGate:
    """Checks and toggles the ``locked`` flag of product versions."""

    def __init__(self, authorizer: Authorizer | None = None) -> None:
        self.authorizer = authorizer

    def ensure_unlocked(self, product_version: ProductVersion) -> None:
        """Raise ``ProductVersionLockedError`` if mutation is not allowed."""
        if product_version.locked:
            logger.warning("Rejected change to locked product version %d", product_version.id)
            raise ProductVersionLockedError(product_version.id)

    def lock(self, product_version: ProductVersion, principal: Principal | None = None) -> ProductVersion:
        """Return a locked copy of ``product_version``."""
        self._authorize(principal, OP_LOCK)
        return self._toggle(product_version, locked=True)

    def unlock(self, product_version: ProductVersion, principal: Principal | None = None) -> ProductVersion:
        """Return an unlocked copy of ``product_version``."""
        self._authorize(principal, OP_UNLOCK)
        return self._toggle(product_version, locked=False)

    def _authorize(self, principal: Principal | None, operation: str) -> None:
        if self.authorizer is None:
            return
        if principal is None or not self.authorizer.is_allowed(principal, operation):
            who = principal.email if principal else "anonymous"
            logger.warning("Access denied: %s may not %s", who, operation)
            raise AccessDeniedError(f"Access denied for {operation}")

    @staticmethod
    def _toggle(product_version: ProductVersion, *, locked: bool) -> ProductVersion:
        if product_version.locked == locked:
            logger.debug("Product version %d already %s", product_version.id, "locked" if locked else "unlocked")
        else:
            logger.info("Product version %d %s", product_version.id, "locked" if locked else "unlocked")
        return product_version.model_copy(update={"locked": locked})
