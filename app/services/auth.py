"""Authentication service: user management and JWT tokens.

Identity is the email address. Lookups are case-insensitive and new
addresses are stored lowercased, so the JWT ``sub`` claim (the email) and
invite addresses compare equal regardless of how the user typed them.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.user import User
from app.services.errors import ConflictError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = 24


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def create_user(db: Session, email: str, password: str, name: str | None = None) -> User:
    """Create a user with a bcrypt-hashed password. Duplicate emails are a ConflictError."""
    if get_user_by_email(db, email) is not None:
        raise ConflictError(f"A user with email {normalize_email(email)} already exists")
    user = User(email=normalize_email(email), name=name)
    user.set_password(password)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s", user.id)
    return user


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    user = get_user_by_email(db, email)
    if user is None or not user.verify_password(password):
        return None
    return user


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``data`` as an HS256 JWT with an ``exp`` claim (default 24h)."""
    to_encode = dict(data)
    to_encode["exp"] = datetime.now(timezone.utc) + (
        expires_delta or timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    )
    return jwt.encode(to_encode, get_settings().secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Payload of a valid, unexpired token; None otherwise."""
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None


def get_user_from_token(db: Session, token: str) -> Optional[User]:
    payload = decode_access_token(token)
    if payload is None or not payload.get("sub"):
        return None
    return get_user_by_email(db, payload["sub"])
