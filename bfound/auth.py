from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from .config import Settings, get_settings
from .db import session_scope
from .exceptions import AuthError, RemoteError, ValidationError
from .models import ProfileRow, Session, SessionUser, UserRow

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def validate_credentials(email: str, password: str) -> None:
    if not email or "@" not in email:
        raise ValidationError("A valid email is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


class AuthService:
    """Email/password accounts backed by the ``users`` table, issuing JWT sessions."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def sign_up(self, email: str, password: str, username: Optional[str] = None) -> Session:
        validate_credentials(email, password)
        email = email.strip().lower()
        try:
            with session_scope() as s:
                if s.exec(select(UserRow).where(UserRow.email == email)).first():
                    raise AuthError("Email already in use")
                user = UserRow(id=str(uuid4()), email=email, hashed_password=pwd_context.hash(password))
                s.add(user)
                s.add(ProfileRow(id=user.id, username=username or email.split("@")[0]))
        except SQLAlchemyError as exc:
            raise RemoteError(f"sign up failed: {exc}") from exc
        logger.info("user signed up", extra={"user_id": user.id})
        return self._issue(user)

    def sign_in(self, email: str, password: str) -> Session:
        email = (email or "").strip().lower()
        try:
            with session_scope() as s:
                user = s.exec(select(UserRow).where(UserRow.email == email)).first()
        except SQLAlchemyError as exc:
            raise RemoteError(f"sign in failed: {exc}") from exc
        if not user or not pwd_context.verify(password, user.hashed_password):
            raise AuthError("Invalid credentials")
        return self._issue(user)

    def get_user(self, token: str) -> SessionUser:
        """Resolve an access token to its user; raises AuthError when it doesn't check out."""
        try:
            payload = jwt.decode(token, self.settings.secret_key, algorithms=[ALGORITHM])
        except JWTError as exc:
            raise AuthError("Could not validate credentials") from exc
        user_id = payload.get("sub")
        if not user_id:
            raise AuthError("Could not validate credentials")
        try:
            with session_scope() as s:
                user = s.get(UserRow, user_id)
        except SQLAlchemyError as exc:
            raise RemoteError(f"user lookup failed: {exc}") from exc
        if user is None:
            raise AuthError("Could not validate credentials")
        return SessionUser(id=user.id, email=user.email)

    def _issue(self, user: UserRow) -> Session:
        expires_at = datetime.now(UTC) + timedelta(minutes=self.settings.token_ttl_minutes)
        token = jwt.encode(
            {"sub": user.id, "email": user.email, "exp": expires_at},
            self.settings.secret_key,
            algorithm=ALGORITHM,
        )
        return Session(
            user=SessionUser(id=user.id, email=user.email),
            access_token=token,
            expires_at=expires_at,
        )
