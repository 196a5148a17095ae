"""Business-rule errors raised by the service layer.

Routes translate these into HTTP responses (see ``app.api.deps.http_error``).
None of them are transient; callers must not retry.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base class for rule violations surfaced to the caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(ServiceError):
    """No authenticated actor."""


class ForbiddenError(ServiceError):
    """Authenticated, but the actor's role does not allow the operation."""


class NotFoundError(ServiceError):
    """Referenced entity or token does not exist (or is outside the workspace)."""


class ExpiredError(ServiceError):
    """Invite is past its expiry timestamp."""


class ConflictError(ServiceError):
    """Duplicate invite or membership, or an invite no longer pending."""


class InviteNotPendingError(ConflictError):
    """Invite already reached a terminal status."""

    def __init__(self, status: str) -> None:
        super().__init__(f"This invite has already been {status}")
        self.status = status


class AlreadyMemberError(ConflictError):
    """Actor already holds an active membership in the workspace."""


class EmailMismatchError(ForbiddenError):
    """Invite was addressed to a different email than the actor's."""
