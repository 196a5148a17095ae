"""Authentication API routes: the minimal identity adapter in front of the workspace API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.api.deps import AUTH_COOKIE, get_db, http_error, require_auth
from app.models.user import User
from app.schemas.auth import LoginRequest, MeResponse, TokenResponse, UserRead
from app.services.auth import authenticate_user, create_access_token
from app.services.errors import ForbiddenError, UnauthorizedError
from app.services.workspaces import resolve_current_workspace

logger = logging.getLogger(__name__)

router = APIRouter()

SESSION_MAX_AGE = 60 * 60 * 24  # matches the JWT lifetime


@router.post("/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
) -> TokenResponse:
    """Exchange email and password for a JWT (also set as an httponly cookie)."""
    user = authenticate_user(db, body.email, body.password)
    if user is None:
        logger.info("Failed login for %s", body.email)
        raise http_error(UnauthorizedError("Invalid email or password"))

    token = create_access_token(data={"sub": user.email})
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=SESSION_MAX_AGE,
        path="/",
    )
    return TokenResponse(access_token=token, current_workspace_id=user.current_workspace_id)


@router.post("/logout")
def logout(response: Response) -> dict:
    response.delete_cookie(key=AUTH_COOKIE, path="/")
    return {"detail": "Logged out"}


@router.get("/me", response_model=MeResponse)
def me(
    current_user: User = Depends(require_auth),
    db: Session = Depends(get_db),
) -> MeResponse:
    """Current user plus the workspace requests are scoped to.

    Users without any active membership get ``current_role`` None rather than 403,
    so clients can route them to workspace creation.
    """
    try:
        membership = resolve_current_workspace(db, current_user)
    except ForbiddenError:
        return MeResponse(user=UserRead.model_validate(current_user), current_role=None)
    return MeResponse(
        user=UserRead.model_validate(current_user),
        current_role=membership.role,
    )
