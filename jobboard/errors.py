"""
Typed failures raised by lifecycle operations.

Each error carries a stable ``code`` so callers can render an actionable
message without inspecting store exceptions.
"""
from __future__ import annotations


class LifecycleError(Exception):
    """Base class for rejected operations."""

    code = "error"
    status_code = 400

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__doc__ or self.code


class Forbidden(LifecycleError):
    """Role, ownership or verification does not permit the action."""

    code = "forbidden"
    status_code = 403


class NotFound(LifecycleError):
    """Referenced entity is absent or not visible to the caller."""

    code = "not_found"
    status_code = 404


class Conflict(LifecycleError):
    """Uniqueness rule violated."""

    code = "conflict"
    status_code = 409


class InvalidTransition(LifecycleError):
    """Current state does not allow the requested transition."""

    code = "invalid_transition"
    status_code = 409


class DeliveryFailed(LifecycleError):
    """The email channel did not accept the message."""

    code = "delivery_failed"
    status_code = 502


class InvalidInput(LifecycleError):
    """Required fields are missing or empty."""

    code = "invalid_input"
    status_code = 422
