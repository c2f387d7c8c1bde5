from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

import bcrypt
from fastapi import HTTPException, status
from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from catalogs_api.core.clock import Clock, utc_now
from catalogs_api.core.config import BCRYPT_ROUNDS, JWT_ALGORITHM, JWT_EXPIRE_MINUTES, JWT_SECRET_KEY
from catalogs_api.models.user import User

logger = logging.getLogger(__name__)

BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class UserIdentity:
    id: int
    username: str
    email: str
    tenant_id: int


@dataclass(frozen=True)
class SessionClaims:
    user_id: int
    email: str
    tenant_id: int


# =========================
# PASSWORD (bcrypt direto, sem passlib)
# =========================
def _normalize_password_for_bcrypt(password: str) -> bytes:
    # bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating.
    return (password or "").encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_normalize_password_for_bcrypt(password), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(
            _normalize_password_for_bcrypt(plain_password),
            (password_hash or "").encode("utf-8"),
        )
    except ValueError:
        return False


@lru_cache(maxsize=1)
def _dummy_password_hash() -> str:
    return hash_password("catalogs-api-unknown-user")


def validate_credentials(db: Session, email: str, password: str) -> Optional[UserIdentity]:
    """Return the identity for a matching email/password pair, otherwise ``None``.

    An unknown email and a wrong password are indistinguishable to the caller:
    both return ``None`` after exactly one bcrypt comparison.
    """
    normalized_email = (email or "").strip().lower()
    try:
        user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    except SQLAlchemyError as exc:
        logger.exception("Error validating user credentials")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc

    if user is None:
        verify_password(password, _dummy_password_hash())
        return None
    if not verify_password(password, user.password_hash):
        return None

    return UserIdentity(
        id=int(user.id),
        username=user.username,
        email=user.email,
        tenant_id=int(user.tenant_id),
    )


# =========================
# JWT HELPERS
# =========================
def create_access_token(
    identity: UserIdentity,
    *,
    clock: Clock = utc_now,
    expires_minutes: int = JWT_EXPIRE_MINUTES,
) -> str:
    # "sub" precisa ser STRING (senão dá 'Subject must be a string')
    now = clock().replace(tzinfo=timezone.utc)
    exp = now + timedelta(minutes=expires_minutes)

    payload: Dict[str, Any] = {
        "sub": str(identity.id),
        "email": identity.email,
        "tenant_id": int(identity.tenant_id),
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_session(token: str) -> SessionClaims:
    """Validate a session token; raises ``ValueError`` when it is unusable."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as exc:
        raise ValueError("Invalid or expired token") from exc

    try:
        return SessionClaims(
            user_id=int(payload["sub"]),
            email=str(payload["email"]),
            tenant_id=int(payload["tenant_id"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise ValueError("Token is missing required claims") from exc


def issue_session(identity: UserIdentity, *, clock: Clock = utc_now) -> Dict[str, str]:
    return {
        "username": identity.username,
        "token": create_access_token(identity, clock=clock),
    }
