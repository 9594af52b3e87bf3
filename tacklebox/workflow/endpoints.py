from functools import wraps
from typing import Any, cast

from fastapi import APIRouter, Depends, HTTPException, status

from tacklebox.auth.dependencies import get_auth_session, get_workflow_config
from tacklebox.utils import Conflict, F, ServiceError
from tacklebox.web.guard import AccessRequirement, protected
from tacklebox.workflow.config import WorkflowConfig
from tacklebox.workflow.enums import ROLE_LABELS, UserRole
from tacklebox.workflow.levels import LevelResolver
from tacklebox.workflow.models import AuthSession, TaskHistoryEntry, TaskSnapshot, TransitionResult
from tacklebox.workflow.permissions import RolePermissionResolver
from tacklebox.workflow.schemas import (
    AvailableTransitionsOut,
    PermissionsOut,
    PreflightIn,
    TransitionCheckIn,
    WorkflowOut,
)
from tacklebox.workflow.state_machine import TaskStateMachine


def translate_service_errors(fn: F) -> F:
    """
    Decorator which translates service exceptions into HTTPExceptions while
    preserving the wrapped function's signature so FastAPI/OpenAPI behave correctly.
    """

    @wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await fn(*args, **kwargs)
        except Conflict as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
        except ServiceError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return cast(F, wrapper)


router = APIRouter()

# Admins by role, or campers who unlocked platform settings
MANAGE_WORKFLOW = AccessRequirement(
    roles=frozenset({UserRole.ADMIN}), capability="PLATFORM_SETTINGS", mode="any",
)


# -----------------------
# Permission endpoints
# -----------------------
@router.get("/me/permissions", response_model=PermissionsOut)
@protected()
async def my_permissions(
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """Everything the current user may do, under both models."""
    user = session.user
    levels = LevelResolver(config)
    effective_level = levels.get_effective_level(user)
    is_client = user.role == UserRole.CLIENT
    return PermissionsOut(
        role=user.role,
        role_label=ROLE_LABELS[user.role],
        permissions=RolePermissionResolver(config).get_permissions(user.role),
        effective_level=effective_level,
        level_name=None if is_client else levels.level_name(effective_level),
        is_admin_tier=levels.is_admin_tier(user),
        capabilities=levels.unlocked_capabilities(user),
        nav_items=levels.nav_items_for(user),
        ai_tools=levels.ai_tools_for(user),
    )


# -----------------------
# Transition endpoints
# -----------------------
@router.post("/tasks/transitions/validate", response_model=TransitionResult)
@protected()
async def validate_transition(
    payload: TransitionCheckIn,
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """Graph and role check for the current user."""
    return TaskStateMachine(config).validate_transition(
        payload.current_status, payload.requested_status, session.user.role,
    )


@router.post("/tasks/transitions/preflight", response_model=TransitionResult)
@protected()
async def preflight_transition(
    payload: PreflightIn,
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """Full pre-flight for a status change request."""
    return TaskStateMachine(config).preflight(payload.task, payload.request, session.user)


@router.post(
    "/tasks/transitions/history",
    response_model=TaskHistoryEntry,
    status_code=status.HTTP_201_CREATED,
)
@protected(AccessRequirement(roles=frozenset({UserRole.CONTRACTOR, UserRole.ADMIN})))
@translate_service_errors
async def transition_history_entry(
    payload: PreflightIn,
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """History record to send along with an accepted status change."""
    return TaskStateMachine(config).history_entry(payload.task, payload.request, session.user)


# -----------------------
# Campfire endpoints
# -----------------------
CAMPERS_ONLY = AccessRequirement(roles=frozenset({UserRole.CONTRACTOR}))


@router.post("/tasks/campfire/claim/preflight", response_model=TransitionResult)
@protected(CAMPERS_ONLY)
async def preflight_claim(
    task: TaskSnapshot,
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    return TaskStateMachine(config).preflight_claim(task, session.user)


@router.post(
    "/tasks/campfire/claim",
    response_model=TaskHistoryEntry,
    status_code=status.HTTP_201_CREATED,
)
@protected(CAMPERS_ONLY)
@translate_service_errors
async def claim_task(
    task: TaskSnapshot,
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """History record for a camper claiming a campfire task (submitted → assigned)."""
    return TaskStateMachine(config).claim_entry(task, session.user)


@router.post("/tasks/campfire/pass/preflight", response_model=TransitionResult)
@protected(CAMPERS_ONLY)
async def preflight_pass(
    task: TaskSnapshot,
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    return TaskStateMachine(config).preflight_pass(task, session.user)


@router.post(
    "/tasks/campfire/pass",
    response_model=TaskHistoryEntry,
    status_code=status.HTTP_201_CREATED,
)
@protected(CAMPERS_ONLY)
@translate_service_errors
async def pass_task(
    task: TaskSnapshot,
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """History record for a camper handing a task back (assigned → submitted)."""
    return TaskStateMachine(config).pass_entry(task, session.user)


@router.get("/tasks/transitions/{current_status}", response_model=AvailableTransitionsOut)
@protected()
async def available_transitions(
    current_status: str,
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """Statuses the current user could move a task to from here."""
    return AvailableTransitionsOut(
        status=current_status,
        transitions=TaskStateMachine(config).available_transitions(
            current_status, session.user.role,
        ),
    )


@router.get("/workflow", response_model=WorkflowOut)
@protected(MANAGE_WORKFLOW)
async def get_workflow(
    session: AuthSession = Depends(get_auth_session),
    config: WorkflowConfig = Depends(get_workflow_config),
):
    """The whole transition graph. Admin tier only."""
    return WorkflowOut(
        initial_status=config.initial_status,
        terminal_statuses=sorted(config.terminal_statuses, key=lambda s: s.value),
        transitions=config.rules(),
    )

