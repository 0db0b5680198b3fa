from __future__ import annotations

import logging
from typing import Callable, Optional

from .auth import AuthService
from .exceptions import AuthError, RemoteError
from .local_store import SESSION_KEY, LocalStorage
from .models import Session, SessionUser, utcnow

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[Session]], None]


class SessionContext:
    """Current-user identity for one workspace.

    ``init()`` resolves a persisted session on start; ``sign_in``/``sign_up`` set
    it and ``sign_out`` clears it. Listeners are told about every change.
    """

    def __init__(self, storage: LocalStorage, auth: AuthService) -> None:
        self.storage = storage
        self.auth = auth
        self._session: Optional[Session] = None
        self._listeners: list[Listener] = []

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def user(self) -> Optional[SessionUser]:
        return self._session.user if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def require_user(self) -> SessionUser:
        if self._session is None:
            raise AuthError("Sign in required")
        return self._session.user

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def init(self) -> Optional[Session]:
        raw = self.storage.get_json(SESSION_KEY)
        if not raw:
            return None
        try:
            cached = Session.model_validate(raw)
        except ValueError:
            logger.warning("discarding unreadable cached session")
            self.storage.remove_item(SESSION_KEY)
            return None
        if cached.expires_at <= utcnow():
            self.storage.remove_item(SESSION_KEY)
            return None
        try:
            self.auth.get_user(cached.access_token)
        except AuthError:
            logger.info("cached session rejected", extra={"user_id": cached.user.id})
            self.storage.remove_item(SESSION_KEY)
            return None
        except RemoteError:
            # offline: keep the cached identity
            logger.warning("could not verify cached session", exc_info=True)
        self._set(cached)
        return cached

    def sign_up(self, email: str, password: str, username: Optional[str] = None) -> Session:
        session = self.auth.sign_up(email, password, username)
        self._set(session)
        return session

    def sign_in(self, email: str, password: str) -> Session:
        session = self.auth.sign_in(email, password)
        self._set(session)
        return session

    def sign_out(self) -> None:
        self._set(None)

    def _set(self, session: Optional[Session]) -> None:
        self._session = session
        if session is None:
            self.storage.remove_item(SESSION_KEY)
        else:
            self.storage.set_json(SESSION_KEY, session.to_json())
        for listener in list(self._listeners):
            listener(session)
