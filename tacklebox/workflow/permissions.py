from __future__ import annotations

from typing import Optional, Protocol

from loguru import logger

from tacklebox.workflow.config import WorkflowConfig, default_config
from tacklebox.workflow.enums import UserRole, parse_role, parse_status
from tacklebox.workflow.models import User


class AccessPolicy(Protocol):
    """Common predicate shared by the role-set and level models."""

    def allows(self, user: Optional[User], key: str) -> bool:
        ...


class RolePermissionResolver:
    """
    Legacy role-set model: permission key → roles allowed.
    Every query answers with a bool; anything unknown is a denial.
    """

    def __init__(self, config: Optional[WorkflowConfig] = None):
        self.config = config or default_config()

    def has_permission(self, role: UserRole | str, permission_key: str) -> bool:
        """Check if a role holds a permission"""
        allowed = self.config.role_permissions.get(permission_key)
        if allowed is None:
            logger.debug("Unknown permission {!r}", permission_key)
            return False
        return parse_role(role) in allowed

    def get_permissions(self, role: UserRole | str) -> list[str]:
        """All permission keys granted to a role"""
        resolved = parse_role(role)
        if resolved is None:
            return []
        return [
            key for key, roles in self.config.role_permissions.items()
            if resolved in roles
        ]

    def can_transition_task(
        self,
        role: UserRole | str,
        from_status,
        to_status,
    ) -> bool:
        """Check if a role may move a task along the from → to edge"""
        source, target = parse_status(from_status), parse_status(to_status)
        if source is None or target is None:
            return False
        allowed = self.config.edge_roles(source, target)
        if allowed is None:
            return False
        return parse_role(role) in allowed

    @staticmethod
    def is_admin(user: Optional[User]) -> bool:
        """Check if user carries the admin role"""
        return user is not None and user.role == UserRole.ADMIN


class RolePolicy:
    """AccessPolicy over the role-set model."""

    def __init__(self, resolver: Optional[RolePermissionResolver] = None):
        self.resolver = resolver or RolePermissionResolver()

    def allows(self, user: Optional[User], key: str) -> bool:
        if user is None:
            return False
        return self.resolver.has_permission(user.role, key)


# Helper functions over the built-in tables
def has_permission(role: UserRole | str, permission_key: str) -> bool:
    return RolePermissionResolver().has_permission(role, permission_key)


def get_permissions(role: UserRole | str) -> list[str]:
    return RolePermissionResolver().get_permissions(role)


def can_transition_task(role: UserRole | str, from_status, to_status) -> bool:
    return RolePermissionResolver().can_transition_task(role, from_status, to_status)
