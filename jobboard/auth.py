from __future__ import annotations

from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from . import crud, models, security
from .database import get_db


def authenticate(db: Session, email: str, password: str) -> models.Profile | None:
    """
    Look up a profile by email and check its password.

    ``OAuth2PasswordRequestForm`` names the field ``username``; it carries
    the email address here.
    """
    profile = crud.get_profile_by_email(db, email)
    if not profile or not security.verify_password(password, profile.hashed_password):
        return None
    return profile


def get_token_from_cookie_or_header(request: Request) -> str | None:
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]

    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        return cookie_token[7:]

    return None


def get_current_principal(request: Request, db: Session = Depends(get_db)) -> models.Profile:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = get_token_from_cookie_or_header(request)
    if not token:
        raise credentials_exception

    profile_id = security.decode_access_token(token)
    if profile_id is None:
        raise credentials_exception
    profile = crud.get_profile(db, profile_id)
    if profile is None:
        raise credentials_exception
    return profile
