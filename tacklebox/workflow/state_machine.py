from __future__ import annotations

from typing import Optional

from loguru import logger

from tacklebox.utils import Conflict, InvalidTransitionRequest
from tacklebox.workflow import tables
from tacklebox.workflow.config import WorkflowConfig, default_config
from tacklebox.workflow.enums import TaskStatus, TransitionError, UserRole, parse_status
from tacklebox.workflow.models import (
    TaskHistoryEntry,
    TaskSnapshot,
    TransitionRequest,
    TransitionResult,
    User,
)
from tacklebox.workflow.permissions import RolePermissionResolver


def _same_id(left, right) -> bool:
    # ids arrive as ints from task payloads and as strings from token claims
    return left is not None and right is not None and str(left) == str(right)


class TaskStateMachine:
    """
    Pre-flight checks for task status changes.

    Nothing here mutates a task or talks to the API; callers run these
    before sending the status change, and the API has the final word.
    """

    def __init__(self, config: Optional[WorkflowConfig] = None):
        self.config = config or default_config()
        self.permissions = RolePermissionResolver(self.config)

    def validate_transition(
        self,
        current_status,
        requested_status,
        actor_role: UserRole | str,
    ) -> TransitionResult:
        current, requested = parse_status(current_status), parse_status(requested_status)
        if current is None or requested is None or requested not in self.config.targets(current):
            logger.debug(
                "No transition {!r} -> {!r}", current_status, requested_status,
            )
            return TransitionResult.fail(TransitionError.INVALID_TRANSITION)

        if not self.permissions.can_transition_task(actor_role, current, requested):
            logger.debug(
                "Role {!r} may not move a task {} -> {}",
                actor_role, current.value, requested.value,
            )
            return TransitionResult.fail(TransitionError.UNAUTHORIZED)

        return TransitionResult.ok()

    def available_transitions(self, current_status, actor_role: UserRole | str) -> list[TaskStatus]:
        """Next statuses the role could move the task to"""
        current = parse_status(current_status)
        if current is None:
            return []
        return [
            target for target in self.config.targets(current)
            if self.permissions.can_transition_task(actor_role, current, target)
        ]

    def is_terminal(self, status) -> bool:
        return parse_status(status) in self.config.terminal_statuses

    def preflight(
        self,
        task: TaskSnapshot,
        request: TransitionRequest,
        actor: User,
    ) -> TransitionResult:
        """
        Full request check: graph and role first, then the assignee rule
        for contractors, any fields the edge requires and its deliverable
        rule.
        """
        result = self.validate_transition(task.status, request.status, actor.role)
        if not result.allowed:
            return result

        if actor.role == UserRole.CONTRACTOR and not _same_id(task.contractor_id, actor.id):
            logger.debug("Contractor {} is not assigned to task {}", actor.id, task.id)
            return TransitionResult.fail(TransitionError.UNAUTHORIZED)

        current, requested = TaskStatus(task.status), TaskStatus(request.status)
        for field_name in self.config.edge_requires(current, requested):
            if getattr(request, field_name, None) in (None, ""):
                return TransitionResult.fail(TransitionError.MISSING_FIELD, field=field_name)

        if self.config.needs_deliverable(current, requested) and task.deliverable_count == 0:
            return TransitionResult.fail(TransitionError.MISSING_DELIVERABLE)

        return TransitionResult.ok()

    def history_entry(
        self,
        task: TaskSnapshot,
        request: TransitionRequest,
        actor: User,
    ) -> TaskHistoryEntry:
        """Audit record for an accepted transition."""
        result = self.preflight(task, request, actor)
        if not result.allowed:
            raise InvalidTransitionRequest(result)
        return TaskHistoryEntry(
            task_id=task.id,
            changed_by=actor.id,
            from_status=TaskStatus(task.status),
            to_status=TaskStatus(request.status),
            note=request.note,
        )

    # ---- campfire ----
    def preflight_claim(self, task: TaskSnapshot, actor: User) -> TransitionResult:
        """A camper picking an open task off the campfire."""
        if actor.role != UserRole.CONTRACTOR:
            return TransitionResult.fail(TransitionError.UNAUTHORIZED)
        if (
            not task.campfire_eligible
            or parse_status(task.status) is not TaskStatus.SUBMITTED
            or task.contractor_id is not None
        ):
            logger.debug("Task {} is not open for claiming", task.id)
            return TransitionResult.fail(TransitionError.ALREADY_CLAIMED)
        return TransitionResult.ok()

    def preflight_pass(self, task: TaskSnapshot, actor: User) -> TransitionResult:
        """The assigned camper handing a task back before starting it."""
        if actor.role != UserRole.CONTRACTOR or not _same_id(task.contractor_id, actor.id):
            return TransitionResult.fail(TransitionError.UNAUTHORIZED)
        if parse_status(task.status) is not TaskStatus.ASSIGNED:
            return TransitionResult.fail(TransitionError.INVALID_TRANSITION)
        return TransitionResult.ok()

    def claim_entry(self, task: TaskSnapshot, actor: User) -> TaskHistoryEntry:
        result = self.preflight_claim(task, actor)
        if result.reason is TransitionError.ALREADY_CLAIMED:
            raise Conflict("This task has already been claimed")
        if not result.allowed:
            raise InvalidTransitionRequest(result)
        return TaskHistoryEntry(
            task_id=task.id,
            changed_by=actor.id,
            from_status=TaskStatus.SUBMITTED,
            to_status=TaskStatus.ASSIGNED,
            note=tables.CLAIM_NOTE,
        )

    def pass_entry(self, task: TaskSnapshot, actor: User) -> TaskHistoryEntry:
        result = self.preflight_pass(task, actor)
        if not result.allowed:
            raise InvalidTransitionRequest(result)
        return TaskHistoryEntry(
            task_id=task.id,
            changed_by=actor.id,
            from_status=TaskStatus.ASSIGNED,
            to_status=TaskStatus.SUBMITTED,
            note=tables.PASS_NOTE,
        )


def validate_transition(current_status, requested_status, actor_role: UserRole | str) -> TransitionResult:
    """validate_transition over the built-in tables"""
    return TaskStateMachine().validate_transition(current_status, requested_status, actor_role)
