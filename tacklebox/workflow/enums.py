from enum import Enum


class TaskStatus(str, Enum):
    SUBMITTED = "submitted"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    REVISION = "revision"
    APPROVED = "approved"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class UserRole(str, Enum):
    """Global user roles, fixed when the account is created"""
    CLIENT = "client"  # Submits tasks
    CONTRACTOR = "contractor"  # "Camper", completes tasks, carries a level
    ADMIN = "admin"  # Manages users, projects and the workflow


class TransitionError(str, Enum):
    """Why a requested status change was rejected"""
    INVALID_TRANSITION = "InvalidTransition"  # edge not in the graph
    UNAUTHORIZED = "Unauthorized"  # edge exists, actor may not take it
    MISSING_FIELD = "MissingField"  # edge needs data the request lacks
    MISSING_DELIVERABLE = "MissingDeliverable"  # no deliverable uploaded yet
    ALREADY_CLAIMED = "AlreadyClaimed"  # campfire task taken or not offered


TASK_STATUS_LABELS = {
    TaskStatus.SUBMITTED: "Submitted",
    TaskStatus.ASSIGNED: "Assigned",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.REVIEW: "Review",
    TaskStatus.REVISION: "Revision",
    TaskStatus.APPROVED: "Approved",
    TaskStatus.CLOSED: "Closed",
    TaskStatus.CANCELLED: "Cancelled",
}

PRIORITY_LABELS = {
    Priority.LOW: "Low",
    Priority.MEDIUM: "Medium",
    Priority.HIGH: "High",
    Priority.URGENT: "Urgent",
}

# Most pressing first
PRIORITY_ORDER = (
    Priority.URGENT,
    Priority.HIGH,
    Priority.MEDIUM,
    Priority.LOW,
)

ROLE_LABELS = {
    UserRole.CLIENT: "Client",
    UserRole.CONTRACTOR: "Camper",
    UserRole.ADMIN: "Admin",
}


def parse_status(value) -> TaskStatus | None:
    """Coerce a raw value into a TaskStatus, or None if it is not one."""
    if isinstance(value, TaskStatus):
        return value
    try:
        return TaskStatus(value)
    except ValueError:
        return None


def parse_role(value) -> UserRole | None:
    """Coerce a raw value into a UserRole, or None if it is not one."""
    if isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None
