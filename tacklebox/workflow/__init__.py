"""Task lifecycle and permission engine."""

from tacklebox.workflow.config import WorkflowConfig, default_config, load_workflow_config
from tacklebox.workflow.levels import (
    LevelPolicy,
    LevelResolver,
    get_effective_level,
    has_capability,
    is_admin_tier,
)
from tacklebox.workflow.permissions import (
    AccessPolicy,
    RolePermissionResolver,
    RolePolicy,
    can_transition_task,
    get_permissions,
    has_permission,
)
from tacklebox.workflow.state_machine import TaskStateMachine, validate_transition

__all__ = [
    "AccessPolicy",
    "LevelPolicy",
    "LevelResolver",
    "RolePermissionResolver",
    "RolePolicy",
    "TaskStateMachine",
    "WorkflowConfig",
    "can_transition_task",
    "default_config",
    "get_effective_level",
    "get_permissions",
    "has_capability",
    "has_permission",
    "is_admin_tier",
    "load_workflow_config",
    "validate_transition",
]
