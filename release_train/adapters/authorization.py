"""Role-based authorizer — admins may perform every administrative operation.
"""

from __future__ import annotations

from release_train.adapters.base import Authorizer
from release_train.core.models.release import Principal


class RoleAuthorizer(Authorizer):
    """Allows an operation when the principal holds ``admin_role``."""

    def __init__(self, admin_role: str = "release-admin") -> None:
        self.admin_role = admin_role

    def is_allowed(self, principal: Principal, operation: str) -> bool:
        return principal.has_role(self.admin_role)
