# ---- Custom exceptions ----
from typing import Any, Callable, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


class ServiceError(Exception):
    """Base class for service errors."""


class Conflict(ServiceError):
    """Raised when the task is no longer in the state the request expects."""


class WorkflowConfigError(ServiceError):
    """Raised when workflow tables are inconsistent or cannot be loaded."""


class InvalidTransitionRequest(ServiceError):
    """Raised when a history entry is requested for a rejected transition."""

    def __init__(self, result: Any):
        self.result = result
        super().__init__(f"Transition rejected: {result.reason.value}")
