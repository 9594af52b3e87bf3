from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tacklebox.workflow.enums import TaskStatus, TransitionError, UserRole, parse_role


# --- users ---
class _UserBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    email: Optional[str] = None
    display_name: Optional[str] = None


class ClientUser(_UserBase):
    # Clients sit outside the level model entirely
    role: Literal[UserRole.CLIENT] = UserRole.CLIENT


class ContractorUser(_UserBase):
    role: Literal[UserRole.CONTRACTOR] = UserRole.CONTRACTOR
    level: Optional[int] = None  # unset resolves to the default level


class AdminUser(_UserBase):
    role: Literal[UserRole.ADMIN] = UserRole.ADMIN
    level: Optional[int] = None  # floored to the admin tier when resolved


User = Union[ClientUser, ContractorUser, AdminUser]

_USER_CLASSES = {
    UserRole.CLIENT: ClientUser,
    UserRole.CONTRACTOR: ContractorUser,
    UserRole.ADMIN: AdminUser,
}


def parse_user(data: dict[str, Any]) -> User:
    """
    Build the right user variant from an identity-provider record.
    Raises ValueError for a missing or unknown role.
    """
    role = parse_role(data.get("role"))
    if role is None:
        raise ValueError(f"Unknown user role: {data.get('role')!r}")
    return _USER_CLASSES[role].model_validate({**data, "role": role})


# --- session ---
class AuthSession(BaseModel):
    """What the identity provider currently knows about the visitor."""

    model_config = ConfigDict(frozen=True)

    user: Optional[User] = None
    is_authenticated: bool = False
    is_loading: bool = False

    @model_validator(mode="after")
    def _authenticated_needs_user(self) -> "AuthSession":
        if self.is_authenticated and self.user is None:
            raise ValueError("an authenticated session must carry a user")
        return self

    @classmethod
    def loading(cls) -> "AuthSession":
        return cls(is_loading=True)

    @classmethod
    def anonymous(cls) -> "AuthSession":
        return cls()

    @classmethod
    def for_user(cls, user: User) -> "AuthSession":
        return cls(user=user, is_authenticated=True)


# --- tasks ---
class TaskSnapshot(BaseModel):
    """The slice of a task the pre-flight checks look at."""

    id: Union[int, str]
    # Unknown statuses are let through and rejected as InvalidTransition
    status: Union[TaskStatus, str]
    client_id: Optional[Union[int, str]] = None
    contractor_id: Optional[Union[int, str]] = None
    project_id: Optional[Union[int, str]] = None
    category_id: Optional[Union[int, str]] = None
    deliverable_count: int = Field(0, ge=0)
    campfire_eligible: bool = False


class TransitionRequest(BaseModel):
    status: str
    contractor_id: Optional[Union[int, str]] = None
    note: Optional[str] = None


class TransitionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: Optional[TransitionError] = None
    field: Optional[str] = None  # set for MissingField

    @classmethod
    def ok(cls) -> "TransitionResult":
        return cls(allowed=True)

    @classmethod
    def fail(cls, reason: TransitionError, field: Optional[str] = None) -> "TransitionResult":
        return cls(allowed=False, reason=reason, field=field)


class TaskHistoryEntry(BaseModel):
    task_id: Union[int, str]
    changed_by: Union[int, str]
    from_status: TaskStatus
    to_status: TaskStatus
    note: Optional[str] = None


# --- level catalogue ---
class LevelTier(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int = Field(..., ge=1)
    name: str
    xp_required: int = Field(0, ge=0)
    fire_stage: str


class NavItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    label: str
    min_level: Optional[int] = None


class AITool(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    label: str
    min_level: int = Field(..., ge=1)
