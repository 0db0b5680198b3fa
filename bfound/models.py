from __future__ import annotations

from datetime import UTC, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field as PField, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

PRIVATE_TAG = "private"


def utcnow() -> datetime:
    return datetime.now(UTC)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # sqlite hands datetimes back naive
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class _Record(BaseModel):
    """Client-side records are stored camelCased, the way the web app wrote them."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# ---------- client records ----------

class Note(_Record):
    id: str
    title: str
    content: str = ""
    date: datetime = PField(default_factory=utcnow)
    tags: list[str] = PField(default_factory=list)
    is_favorite: bool = False
    points: Optional[int] = None
    deleted_at: Optional[datetime] = None
    is_published: bool = False
    share_id: Optional[str] = None
    mentions: list[str] = PField(default_factory=list)

    @field_validator("date", "deleted_at")
    @classmethod
    def normalize_tz(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @property
    def is_private(self) -> bool:
        return PRIVATE_TAG in self.tags

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def touch(self) -> None:
        self.date = utcnow()


class UserProfile(_Record):
    id: Optional[str] = None
    username: str = ""
    avatar_url: Optional[str] = None
    points: int = 0
    streak: int = 0
    last_note_date: Optional[str] = None  # YYYY-MM-DD, local calendar
    followers: list[str] = PField(default_factory=list)
    following: list[str] = PField(default_factory=list)


class SessionUser(_Record):
    id: str
    email: str


class Session(_Record):
    user: SessionUser
    access_token: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def normalize_tz(cls, value: datetime) -> datetime:
        return _as_utc(value)


class AppSettings(_Record):
    minimalist_mode: bool = False
    sync_enabled: bool = True
    # display-only toggle; nothing is encrypted
    encryption_enabled: bool = True
    notifications_enabled: bool = False


class PublishedNote(_Record):
    id: str
    share_id: str
    title: str
    content: str
    tags: list[str]
    date: datetime
    author_id: str
    author: str
    author_avatar: Optional[str] = None


class Activity(_Record):
    user_id: str
    username: str
    avatar_url: Optional[str] = None
    action: str
    note_title: str
    share_id: Optional[str] = None
    date: datetime


# ---------- remote tables ----------

class NoteRow(SQLModel, table=True):
    __tablename__ = "notes"

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)
    title: str
    content: str = ""
    date: datetime = Field(default_factory=utcnow)
    tags: list = Field(default_factory=list, sa_column=Column(JSON))
    is_favorite: bool = False
    points: Optional[int] = None
    deleted_at: Optional[datetime] = None
    is_published: bool = Field(default=False, index=True)
    share_id: Optional[str] = Field(default=None, index=True)
    mentions: list = Field(default_factory=list, sa_column=Column(JSON))


class ProfileRow(SQLModel, table=True):
    __tablename__ = "profiles"

    id: str = Field(primary_key=True)
    username: str = Field(default="", index=True)
    avatar_url: Optional[str] = None
    points: int = 0
    streak: int = 0
    last_note_date: Optional[str] = None
    followers: list = Field(default_factory=list, sa_column=Column(JSON))
    following: list = Field(default_factory=list, sa_column=Column(JSON))
    updated_at: datetime = Field(default_factory=utcnow)


class UserRow(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(primary_key=True)
    email: str = Field(index=True, unique=True)
    hashed_password: str
    created_at: datetime = Field(default_factory=utcnow)
