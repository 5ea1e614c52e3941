"""
Flow engine errors.

Structural problems are raised before any backend interaction. Step level
problems are normally converted into failed step results by the dispatcher,
so only ``simulate_flow`` lets a ``FlowValidationError`` escape to callers.
"""

from enum import Enum
from typing import List, Optional


class FailureKind(str, Enum):
    """Why a step or run failed."""
    MISSING_ENTRY = "missing_entry"
    NO_ACTION_NODES = "no_action_nodes"
    UNKNOWN_NODE_KIND = "unknown_node_kind"
    UNSUPPORTED_ACTION = "unsupported_action"
    BACKEND_FAILURE = "backend_failure"
    UNCAUGHT = "uncaught"


class FlowError(Exception):
    """Base exception for flow engine errors."""

    kind: FailureKind = FailureKind.UNCAUGHT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FlowValidationError(FlowError):
    """The graph cannot be run as drawn."""

    def __init__(
        self,
        message: str,
        kind: FailureKind = FailureKind.MISSING_ENTRY,
        issues: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.issues = issues or [message]


class UnsupportedActionError(FlowError):
    """A contract action the engine refuses to send to the backend."""

    kind = FailureKind.UNSUPPORTED_ACTION

    def __init__(self, action: str):
        super().__init__(f"{action.capitalize()} action is not yet implemented")
        self.action = action


class BackendError(FlowError):
    """The chain-abstraction backend rejected or failed a call."""

    kind = FailureKind.BACKEND_FAILURE


class BackendNotInitializedError(BackendError):
    """A call needed a live backend session but none was initialized."""

    def __init__(self, message: str = "Nexus SDK not initialized"):
        super().__init__(message)


class NexusApiError(BackendError):
    """HTTP level failure talking to the backend gateway."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
