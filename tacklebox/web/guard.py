"""Route/action guard.

The one place where access rules turn into something the visitor sees.
Checks run in a fixed order and the first match wins:

  1. session still loading   → neutral loading placeholder
  2. not authenticated       → redirect to the login page
  3. role allow-list unmet   → access denied
  4. minimum level unmet     → access denied
  5. otherwise               → the protected content

Loading comes first so nobody sees a "denied" flash while the session is
being resolved, and authentication comes before authorisation. Nothing is
cached: every request is evaluated against the session it carries.

Denials never say which role or level would have been enough.
"""

from __future__ import annotations

import enum
from functools import wraps
from typing import Any, Callable, Literal, Optional, cast

from fastapi import status
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from starlette.responses import Response

from tacklebox.settings import settings
from tacklebox.utils import F
from tacklebox.workflow.config import WorkflowConfig
from tacklebox.workflow.enums import UserRole
from tacklebox.workflow.levels import LevelResolver
from tacklebox.workflow.models import AuthSession

ACCESS_DENIED = "Access denied"


class AccessOutcome(str, enum.Enum):
    LOADING = "loading"
    LOGIN_REDIRECT = "login_redirect"
    DENIED = "denied"
    GRANTED = "granted"


class AccessRequirement(BaseModel):
    """
    What a route or action asks of the visitor.

    ``roles`` and ``min_level``/``capability`` may be combined; ``mode``
    says whether both must pass ("all") or either is enough ("any").
    A capability is turned into its minimum level when evaluated.
    """

    model_config = ConfigDict(frozen=True)

    roles: Optional[frozenset[UserRole]] = None
    min_level: Optional[int] = Field(None, ge=1)
    capability: Optional[str] = None
    mode: Literal["all", "any"] = "all"

    @field_validator("roles")
    @classmethod
    def _roles_not_empty(cls, value):
        if value is not None and not value:
            raise ValueError("an empty role allow-list admits nobody; leave it unset")
        return value

    @field_validator("capability")
    @classmethod
    def _capability_not_blank(cls, value):
        if value is not None and not value.strip():
            raise ValueError("capability must be a non-empty key")
        return value

    @model_validator(mode="after")
    def _mode_needs_two_checks(self) -> "AccessRequirement":
        has_level = self.min_level is not None or self.capability is not None
        if self.mode == "any" and not (self.roles and has_level):
            raise ValueError("mode='any' needs both a role list and a level requirement")
        return self


def evaluate_access(
    session: AuthSession,
    requirement: Optional[AccessRequirement] = None,
    levels: Optional[LevelResolver] = None,
) -> AccessOutcome:
    """Decide what the visitor gets. Pure; safe to call on every request."""
    if session.is_loading:
        return AccessOutcome.LOADING
    if not session.is_authenticated:
        return AccessOutcome.LOGIN_REDIRECT
    if requirement is None:
        return AccessOutcome.GRANTED

    user = session.user
    levels = levels or LevelResolver()

    role_ok: Optional[bool] = None
    if requirement.roles is not None:
        role_ok = user.role in requirement.roles

    level_ok: Optional[bool] = None
    if requirement.min_level is not None or requirement.capability is not None:
        needed = requirement.min_level or 0
        if requirement.capability is not None:
            needed = max(needed, levels.level_for(requirement.capability))
        level_ok = levels.get_effective_level(user) >= needed

    if requirement.mode == "any":
        granted = bool(role_ok or level_ok)
    else:
        granted = role_ok is not False and level_ok is not False

    return AccessOutcome.GRANTED if granted else AccessOutcome.DENIED


def check_action(
    session: AuthSession,
    requirement: Optional[AccessRequirement] = None,
    config: Optional[WorkflowConfig] = None,
) -> bool:
    """Guard for a single action (button, form submit): granted or not."""
    outcome = evaluate_access(session, requirement, LevelResolver(config))
    return outcome is AccessOutcome.GRANTED


def render_outcome(outcome: AccessOutcome, login_path: Optional[str] = None) -> Response:
    """HTTP form of a non-granted outcome."""
    if outcome is AccessOutcome.LOADING:
        return JSONResponse(
            status_code=status.HTTP_202_ACCEPTED,
            content={"status": "loading"},
            headers={"Retry-After": str(settings.loading_retry_after)},
        )
    if outcome is AccessOutcome.LOGIN_REDIRECT:
        return RedirectResponse(
            url=login_path or settings.login_path,
            status_code=status.HTTP_303_SEE_OTHER,
        )
    if outcome is AccessOutcome.DENIED:
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"detail": ACCESS_DENIED},
        )
    raise ValueError(f"Nothing to render for {outcome}")


def protected(
    requirement: Optional[AccessRequirement] = None,
    *,
    login_path: Optional[str] = None,
) -> Callable[[F], F]:
    """
    Decorator guarding an endpoint.

    The endpoint must take ``session`` (an AuthSession) and ``config``
    (the WorkflowConfig) as keyword dependencies. When access is not
    granted the endpoint body never runs and the guard's response is
    returned instead.

    Usage:
        @router.get("/workflow")
        @protected(AccessRequirement(roles={UserRole.ADMIN}))
        async def workflow(
            session: AuthSession = Depends(get_auth_session),
            config: WorkflowConfig = Depends(get_workflow_config),
        ):
            ...
    """

    def decorator(fn: F) -> F:
        @wraps(fn)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            session: AuthSession = kwargs["session"]
            config: WorkflowConfig = kwargs["config"]
            outcome = evaluate_access(session, requirement, LevelResolver(config))
            if outcome is not AccessOutcome.GRANTED:
                user_id = session.user.id if session.user else None
                logger.info("Guard: {} for {} (user={})", outcome.value, fn.__name__, user_id)
                return render_outcome(outcome, login_path)
            return await fn(*args, **kwargs)

        return cast(F, wrapper)

    return decorator
