# SPDX-License-Identifier: Apache-2.0

"""
Domain exception hierarchy for the case lifecycle core.

These exceptions describe business-rule outcomes only. They carry an
``error_type`` slug but no HTTP status; the presentation layer
(``middleware.error_handler``) owns the mapping to status codes.

    DomainError
    ├── InvalidArgument      malformed input
    ├── NotFound             missing case/user, or kind mismatch
    ├── Forbidden            role, ownership or assignment missing
    └── Conflict             case held by another NGO, lost claim race
        └── InvalidTransition

``StorageError`` is deliberately outside ``DomainError``: it wraps
infrastructure failures and must never be confused with a business outcome.
"""

from typing import Optional


class DomainError(Exception):
    """Base class for all business-rule errors raised by the core."""

    error_type = "domain-error"

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class InvalidArgument(DomainError):
    """Malformed input: non-finite coordinates, unknown status, missing field."""

    error_type = "invalid-argument"

    def __init__(self, message: str = "Invalid argument.", errors: Optional[list] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class NotFound(DomainError):
    """Referenced case or user does not exist, or has the wrong kind."""

    error_type = "resource-not-found"

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Forbidden(DomainError):
    """Principal lacks the role, ownership or assignment the operation needs."""

    error_type = "insufficient-permissions"

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """Operation conflicts with the current state of the case."""

    error_type = "resource-conflict"

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """Status change not allowed from the current state."""

    error_type = "invalid-transition"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        current: Optional[str] = None,
        target: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> None:
        if message is None:
            parts = ["Invalid status transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            message = " ".join(parts) + "."
            if reason:
                message = f"{message} {reason}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class StorageError(Exception):
    """Opaque failure of the storage collaborator."""

    error_type = "storage-unavailable"

    def __init__(self, message: str = "Storage backend failure.") -> None:
        self.message = message
        super().__init__(self.message)
