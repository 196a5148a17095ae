"""Shared FastAPI dependencies for API routes."""

from __future__ import annotations

import uuid

from fastapi import Cookie, Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.db.session import get_db  # re-export
from app.models.user import User
from app.services.auth import get_user_from_token
from app.services.context import ActorContext
from app.services.errors import (
    ConflictError,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    UnauthorizedError,
)
from app.services.workspaces import get_actor_context, resolve_current_workspace

__all__ = [
    "AUTH_COOKIE",
    "get_db",
    "get_current_user",
    "require_auth",
    "get_current_actor",
    "get_workspace_actor",
    "http_error",
]

# Cookie name for browser sessions
AUTH_COOKIE = "access_token"

_STATUS_BY_ERROR: tuple[tuple[type[ServiceError], int], ...] = (
    (UnauthorizedError, status.HTTP_401_UNAUTHORIZED),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ExpiredError, status.HTTP_410_GONE),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def http_error(exc: ServiceError) -> HTTPException:
    """Translate a service-layer rule violation into an HTTPException."""
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    authorization: str | None = Header(None),
    access_token: str | None = Cookie(None),
) -> User | None:
    """Return the authenticated user or None.

    Checks (in order):
    1. Authorization: Bearer <token> header
    2. access_token cookie
    """
    token: str | None = None

    # Check Authorization header
    if authorization and authorization.startswith("Bearer "):
        token = authorization[len("Bearer ") :]

    # Fall back to cookie
    if token is None and access_token:
        token = access_token

    if token is None:
        return None

    return get_user_from_token(db, token)


def require_auth(
    request: Request,
    user: User | None = Depends(get_current_user),
) -> User:
    """Dependency that requires authentication. Returns 401 when missing."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    return user


def get_current_actor(
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> ActorContext:
    """Actor in the user's current workspace."""
    try:
        membership = resolve_current_workspace(db, user)
    except ServiceError as exc:
        raise http_error(exc) from exc
    return ActorContext(
        user_id=user.id,
        workspace_id=membership.workspace_id,
        role=membership.role,
    )


def get_workspace_actor(
    workspace_id: uuid.UUID,
    db: Session = Depends(get_db),
    user: User = Depends(require_auth),
) -> ActorContext:
    """Actor in the workspace named by the ``workspace_id`` path parameter."""
    try:
        return get_actor_context(db, user.id, workspace_id)
    except ServiceError as exc:
        raise http_error(exc) from exc
