from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tacklebox.workflow.enums import TaskStatus, UserRole
from tacklebox.workflow.models import AITool, NavItem, TaskSnapshot, TransitionRequest


# -----------------------
# Workflow document (alternate tables loaded from JSON)
# -----------------------
class TransitionRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: TaskStatus
    target: TaskStatus
    roles: List[UserRole]
    requires: List[str] = Field(default_factory=list)
    needs_deliverable: bool = False


class WorkflowDocument(BaseModel):
    """
    Any section left out falls back to the built-in tables.
    """
    model_config = ConfigDict(extra="forbid")

    transitions: Optional[List[TransitionRule]] = None
    terminal_statuses: Optional[List[TaskStatus]] = None
    permissions: Optional[dict[str, List[UserRole]]] = None
    level_requirements: Optional[dict[str, int]] = None
    admin_level_floor: Optional[int] = None


# -----------------------
# API payloads
# -----------------------
class TransitionCheckIn(BaseModel):
    # Plain strings so that unknown statuses come back as InvalidTransition
    current_status: str
    requested_status: str


class PreflightIn(BaseModel):
    task: TaskSnapshot
    request: TransitionRequest


class AvailableTransitionsOut(BaseModel):
    status: str
    transitions: List[TaskStatus]


class PermissionsOut(BaseModel):
    role: UserRole
    role_label: str
    permissions: List[str]
    effective_level: int
    level_name: Optional[str]
    is_admin_tier: bool
    capabilities: List[str]
    nav_items: List[NavItem]
    ai_tools: List[AITool]


class WorkflowOut(BaseModel):
    initial_status: TaskStatus
    terminal_statuses: List[TaskStatus]
    transitions: List[TransitionRule]
