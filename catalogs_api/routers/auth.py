from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.orm import Session

from catalogs_api.core.clock import Clock
from catalogs_api.core.database import get_db
from catalogs_api.deps import get_clock
from catalogs_api.services.auth import create_access_token, issue_session, validate_credentials

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginPayload(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    username: str
    token: str


@router.post("/login", response_model=LoginResponse)
def login(
    payload: LoginPayload,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    identity = validate_credentials(db, payload.email, payload.password)
    if identity is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return issue_session(identity, clock=clock)


@router.post("/token")
def token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Endpoint usado pelo botão Authorize do Swagger UI.

    Ele manda form-data com campos: username (o e-mail) e password.
    """
    identity = validate_credentials(db, form_data.username, form_data.password)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return {"access_token": create_access_token(identity, clock=clock), "token_type": "bearer"}
