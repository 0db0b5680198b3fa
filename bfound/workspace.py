from __future__ import annotations

import logging
from typing import Optional

from .auth import AuthService
from .config import Settings, get_settings
from .db import init_db
from .local_store import (
    APP_SETTINGS_KEY,
    PROFILE_KEY,
    SYNC_MESSAGE_KEY,
    LocalStorage,
    NoteCache,
)
from .models import AppSettings, UserProfile
from .objects import ObjectStore
from .remote import RemoteStore
from .session import SessionContext
from .vault import Vault

logger = logging.getLogger(__name__)


class Workspace:
    """Everything one client works with: local storage, identity and backend services."""

    def __init__(
        self,
        settings: Settings,
        storage: LocalStorage,
        auth: AuthService,
        remote: RemoteStore,
        objects: ObjectStore,
    ) -> None:
        self.settings = settings
        self.storage = storage
        self.remote = remote
        self.objects = objects
        self.cache = NoteCache(storage)
        self.vault = Vault(storage)
        self.session = SessionContext(storage, auth)
        self.session.subscribe(self._on_session_change)

    @classmethod
    def open(cls, settings: Optional[Settings] = None) -> "Workspace":
        settings = settings or get_settings()
        init_db()
        ws = cls(
            settings,
            LocalStorage(settings.local_storage_path),
            AuthService(settings),
            RemoteStore(),
            ObjectStore(settings),
        )
        ws.session.init()
        return ws

    def _on_session_change(self, session) -> None:
        if session is None:
            self.vault.lock()
            logger.info("signed out")
        else:
            logger.info("signed in", extra={"user_id": session.user.id})

    # ---------- local profile ----------
    def local_profile(self) -> UserProfile:
        raw = self.storage.get_json(PROFILE_KEY)
        profile = UserProfile.model_validate(raw) if raw else UserProfile()
        user = self.session.user
        if user and profile.id != user.id:
            # cached profile belongs to someone else; start from the account
            profile = UserProfile(id=user.id, username=user.email.split("@")[0])
        return profile

    def save_local_profile(self, profile: UserProfile) -> None:
        self.storage.set_json(PROFILE_KEY, profile.to_json())

    # ---------- app settings ----------
    def app_settings(self) -> AppSettings:
        raw = self.storage.get_json(APP_SETTINGS_KEY) or {}
        try:
            return AppSettings.model_validate({**AppSettings().to_json(), **raw})
        except ValueError:
            logger.error("error parsing saved settings, using defaults")
            return AppSettings()

    def update_settings(self, **changes) -> AppSettings:
        merged = AppSettings.model_validate({**self.app_settings().model_dump(), **changes})
        self.storage.set_json(APP_SETTINGS_KEY, merged.to_json())
        return merged

    @property
    def sync_message_shown(self) -> bool:
        return bool(self.storage.get_json(SYNC_MESSAGE_KEY, False))

    def set_sync_message_shown(self, value: bool) -> None:
        self.storage.set_json(SYNC_MESSAGE_KEY, value)
