"""Level-based capability checks.

The newer authorisation axis: a user resolves to an *effective level* and
each capability names the minimum level that unlocks it.

  client      → 0 (clients are governed by the role-set model instead)
  contractor  → stored level, never below the default of 1
  admin       → at least the admin floor (7), whatever is stored

The admin floor keeps admins working during the move away from pure role
checks. Note the asymmetry with the role-set model: a permission whose role
list leaves out admin still denies an admin, while every capability admits
one. Both behaviours are kept as they are.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from tacklebox.workflow.config import WorkflowConfig, default_config
from tacklebox.workflow.enums import UserRole
from tacklebox.workflow.models import AITool, LevelTier, NavItem, User


class LevelResolver:
    def __init__(self, config: Optional[WorkflowConfig] = None):
        self.config = config or default_config()

    def get_effective_level(self, user: Optional[User]) -> int:
        if user is None or user.role == UserRole.CLIENT:
            return self.config.client_level
        stored = user.level or self.config.default_level
        if user.role == UserRole.ADMIN:
            return max(stored, self.config.admin_level_floor)
        return max(stored, self.config.default_level)

    def has_capability(self, level: int, capability_key: str) -> bool:
        required = self.config.level_requirements.get(capability_key)
        if required is None:
            logger.debug("Unknown capability {!r}", capability_key)
            return False
        return level >= required

    def is_admin_tier(self, user: Optional[User]) -> bool:
        return self.get_effective_level(user) >= self.config.admin_level_floor

    def level_for(self, capability_key: str) -> int:
        """Minimum level for a capability; unknown ones are out of reach."""
        return self.config.level_requirements.get(
            capability_key, self.config.unreachable_level,
        )

    def can(self, user: Optional[User], capability_key: str) -> bool:
        """Capability check for a user. Clients never pass."""
        if user is None or user.role == UserRole.CLIENT:
            return False
        return self.has_capability(self.get_effective_level(user), capability_key)

    def unlocked_capabilities(self, user: Optional[User]) -> list[str]:
        return sorted(
            key for key in self.config.level_requirements if self.can(user, key)
        )

    # ---- catalogue ----
    def tier_for(self, level: int) -> Optional[LevelTier]:
        reached = [tier for tier in self.config.tiers if tier.level <= level]
        return reached[-1] if reached else None

    def level_name(self, level: int) -> Optional[str]:
        tier = self.tier_for(level) or (self.config.tiers[0] if self.config.tiers else None)
        return tier.name if tier else None

    def nav_items_for(self, user: Optional[User]) -> list[NavItem]:
        if user is None:
            return []
        if user.role == UserRole.CLIENT:
            return list(self.config.client_nav_items)
        level = self.get_effective_level(user)
        return [
            item for item in self.config.camper_nav_items
            if level >= (item.min_level or self.config.default_level)
        ]

    def ai_tools_for(self, user: Optional[User]) -> list[AITool]:
        level = self.get_effective_level(user)
        return [tool for tool in self.config.ai_tools if level >= tool.min_level]


class LevelPolicy:
    """AccessPolicy over the level model."""

    def __init__(self, resolver: Optional[LevelResolver] = None):
        self.resolver = resolver or LevelResolver()

    def allows(self, user: Optional[User], key: str) -> bool:
        return self.resolver.can(user, key)


# Helper functions over the built-in tables
def get_effective_level(user: Optional[User]) -> int:
    return LevelResolver().get_effective_level(user)


def has_capability(level: int, capability_key: str) -> bool:
    return LevelResolver().has_capability(level, capability_key)


def is_admin_tier(user: Optional[User]) -> bool:
    return LevelResolver().is_admin_tier(user)
