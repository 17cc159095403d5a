from datetime import datetime, timezone
from typing import Any, ClassVar
from sqlalchemy import CheckConstraint, Column, JSON
from sqlmodel import SQLModel, Field

COPY_MODES = ("normal", "song-request")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Song(SQLModel, table=True):
    __tablename__: ClassVar[Any] = "playlist"

    id: int | None = Field(default=None, primary_key=True)
    title: str
    artist: str = Field(default="")   # may be empty, never null
    language: str = Field(index=True)
    genre: str
    is_featured: bool = Field(default=False, index=True)
    sort_key: str = Field(max_length=1, index=True)   # "A".."Z" or "#"
    clip_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class SiteConfig(SQLModel, table=True):
    """Singleton row; the key space holds the single id 1."""
    __tablename__: ClassVar[Any] = "site_config"
    __table_args__ = (CheckConstraint("id = 1", name="site_config_singleton"),)

    id: int = Field(default=1, primary_key=True)
    site_name: str
    site_subtitle: str = ""
    default_playlist_name: str
    avatar_url: str = ""
    background_url: str = ""
    theme_config: dict = Field(default_factory=dict, sa_column=Column(JSON))   # e.g. {"primaryColor", "secondaryColor"}
    seo_keywords: str = ""
    seo_description: str = ""
    custom_css: str = ""
    custom_js: str = ""
    hidden_title: str = ""
    copy_mode: str = "normal"
    hcaptcha_enabled: bool = False
    hcaptcha_site_key: str = ""
    hcaptcha_secret_key: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Streamer(SQLModel, table=True):
    __tablename__: ClassVar[Any] = "streamer"

    id: int | None = Field(default=None, primary_key=True)
    name: str
    bilibili_url: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Admin(SQLModel, table=True):
    __tablename__: ClassVar[Any] = "admin"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)


class AdminToken(SQLModel, table=True):
    __tablename__: ClassVar[Any] = "admin_token"

    token: str = Field(primary_key=True)
    admin_id: int = Field(foreign_key="admin.id", index=True)
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)
