from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from catalogs_api.core.clock import Clock, utc_now
from catalogs_api.core.database import get_db
from catalogs_api.core.request_context import set_request_context
from catalogs_api.models.user import User
from catalogs_api.services.auth import UserIdentity, decode_session

# Swagger "Authorize" (OAuth2 password flow) vai chamar este endpoint:
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token")

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_clock() -> Clock:
    return utc_now


def _load_session_identity(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> UserIdentity:
    """Decode the bearer token and confirm its user still belongs to the claimed tenant."""
    try:
        claims = decode_session(token)
    except ValueError:
        raise _unauthorized("Invalid or expired token")

    user = db.query(User).filter(User.id == claims.user_id).first()
    if not user:
        raise _unauthorized("User not found")

    if int(user.tenant_id) != claims.tenant_id:
        logger.warning(
            "Session tenant mismatch: user_id=%s user_tenant=%s token_tenant=%s",
            user.id,
            user.tenant_id,
            claims.tenant_id,
        )
        raise _unauthorized("Invalid session")

    return UserIdentity(
        id=int(user.id),
        username=user.username,
        email=user.email,
        tenant_id=claims.tenant_id,
    )


async def get_current_identity(
    request: Request,
    identity: UserIdentity = Depends(_load_session_identity),
) -> UserIdentity:
    # Must run in the request task: sync handlers only see context set there.
    request.state.identity = identity
    set_request_context(tenant_id=identity.tenant_id, user_id=identity.id)
    return identity


async def get_request_tenant_id(identity: UserIdentity = Depends(get_current_identity)) -> int:
    return identity.tenant_id
