from __future__ import annotations

import logging
from typing import Optional

from .exceptions import AuthError, ValidationError
from .local_store import VAULT_PIN_KEY, LocalStorage, NoteCache
from .models import PRIVATE_TAG, Note

logger = logging.getLogger(__name__)

MIN_PIN_LENGTH = 4


class Vault:
    """PIN-gated view over notes tagged ``private``.

    The PIN is kept in plain text in local storage and compared by equality.
    This hides notes from the general listings; it does not protect them.
    """

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage
        self.cache = NoteCache(storage)
        self.unlocked = False

    @property
    def is_setup(self) -> bool:
        return self.storage.get_item(VAULT_PIN_KEY) is not None

    def setup_pin(self, pin: str, confirm: str) -> None:
        if len(pin) < MIN_PIN_LENGTH:
            raise ValidationError(f"PIN must be at least {MIN_PIN_LENGTH} digits")
        if pin != confirm:
            raise ValidationError("PINs don't match")
        self.storage.set_item(VAULT_PIN_KEY, pin)
        logger.info("vault PIN set")

    def unlock(self, pin: str) -> bool:
        stored: Optional[str] = self.storage.get_item(VAULT_PIN_KEY)
        self.unlocked = stored is not None and pin == stored
        if not self.unlocked:
            logger.info("vault unlock rejected")
        return self.unlocked

    def lock(self) -> None:
        self.unlocked = False

    def reset_pin(self) -> None:
        self.storage.remove_item(VAULT_PIN_KEY)
        self.unlocked = False
        logger.info("vault PIN reset")

    def private_notes(self) -> list[Note]:
        if not self.unlocked:
            raise AuthError("Vault is locked")
        return [n for n in self.cache.load() if n.is_private and not n.is_deleted]


def with_private_tag(tags: list[str]) -> list[str]:
    return tags if PRIVATE_TAG in tags else [*tags, PRIVATE_TAG]
