"""Service for user accounts, password hashing and login sessions."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from models import User, UserSession
from services.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS
)


class AuthenticationError(Exception):
    """Unknown user, wrong password, or an expired/unknown session token."""

    pass


def _utcnow() -> datetime:
    # Stored naive; SQLite drops tzinfo on the way back.
    return datetime.now(timezone.utc).replace(tzinfo=None)


def hash_password(password: str) -> str:
    """Hash a password with bcrypt (salt and cost are embedded in the result)."""
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    """Check a password against a stored hash; unrecognised hashes never match."""
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        return False


class AuthService:
    """Registration, login and session lookup."""

    @staticmethod
    def register(
        db: Session, username: str, password: str, email: Optional[str] = None
    ) -> User:
        """Create a user.

        Raises:
            InvalidInputError: The username is taken.
        """
        username = username.strip()
        if db.query(User).filter(User.username == username).first():
            raise InvalidInputError(f"Username {username!r} is already taken", field="username")

        user = User(username=username, email=email, password_hash=hash_password(password))
        db.add(user)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise InvalidInputError(
                f"Username {username!r} is already taken", field="username"
            ) from e
        db.refresh(user)
        logger.info("Registered user %s", username)
        return user

    @staticmethod
    def authenticate(db: Session, username: str, password: str) -> User:
        """Return the user for valid credentials, else raise AuthenticationError."""
        user = db.query(User).filter(User.username == username.strip()).first()
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", username)
            raise AuthenticationError("Invalid username or password")
        return user

    @staticmethod
    def create_session(db: Session, user: User) -> UserSession:
        """Issue a new session token for a user."""
        session = UserSession(
            user_id=user.id,
            token=secrets.token_urlsafe(32),
            expires_at=_utcnow() + timedelta(hours=settings.SESSION_TTL_HOURS),
        )
        db.add(session)
        db.commit()
        db.refresh(session)
        logger.info("Session created for user %s", user.username)
        return session

    @staticmethod
    def resolve_session(db: Session, token: Optional[str]) -> User:
        """Return the user owning a live session token.

        Expired sessions are deleted when seen.

        Raises:
            AuthenticationError: Missing, unknown or expired token.
        """
        if not token:
            raise AuthenticationError("Not authenticated")
        session = db.query(UserSession).filter(UserSession.token == token).first()
        if session is None:
            raise AuthenticationError("Invalid session")
        if session.expires_at <= _utcnow():
            db.delete(session)
            db.commit()
            raise AuthenticationError("Session expired")
        return session.user

    @staticmethod
    def logout(db: Session, token: str) -> None:
        """Delete a session; unknown tokens are ignored."""
        deleted = db.query(UserSession).filter(UserSession.token == token).delete()
        db.commit()
        if deleted:
            logger.info("Session ended")

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        """Delete a user and everything they own."""
        username = user.username
        db.delete(user)
        db.commit()
        logger.info("Deleted user %s and all portfolio data", username)
