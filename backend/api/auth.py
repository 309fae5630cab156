"""Auth API endpoints and the current-user dependency."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from sqlalchemy.orm import Session

from api.helpers import to_http_exception
from config import settings
from database import get_db
from models import User
from schemas import LoginRequest, LoginResponse, RegisterRequest, UserResponse
from services.auth_service import AuthenticationError, AuthService
from services.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _request_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    """Read the session token from a Bearer header, falling back to the cookie."""
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip() or None
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the logged-in user or raise 401."""
    token = _request_token(request, authorization)
    try:
        return AuthService.resolve_session(db, token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=401, detail=str(e), headers={"WWW-Authenticate": "Bearer"}
        )


@router.post("/register", response_model=UserResponse, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account."""
    try:
        return AuthService.register(db, body.username, body.password, body.email)
    except InvalidInputError as e:
        raise to_http_exception(e)


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Log in and receive a session token (also set as an HTTP-only cookie)."""
    try:
        user = AuthService.authenticate(db, body.username, body.password)
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=str(e))

    session = AuthService.create_session(db, user)
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=session.token,
        max_age=settings.SESSION_TTL_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )
    return LoginResponse(token=session.token, expires_at=session.expires_at, user=user)


@router.post("/logout", status_code=204)
def logout(
    request: Request,
    response: Response,
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
):
    """End the current session."""
    token = _request_token(request, authorization)
    if token:
        AuthService.logout(db, token)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    """Return the logged-in user."""
    return user


@router.delete("/me", status_code=204)
def delete_me(
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete the logged-in user and all of their portfolio data."""
    AuthService.delete_user(db, user)
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
