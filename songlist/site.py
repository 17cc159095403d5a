import logging
from typing import Any, Optional
import pydantic
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session, select

from songlist.db import commit
from songlist.errors import NotFoundError, ValidationError, from_pydantic
from songlist.models import COPY_MODES, SiteConfig, Streamer, utcnow

logger = logging.getLogger(__name__)

SITE_CONFIG_ID = 1
SONG_REQUEST_PREFIX = "点歌 "

# wire name -> column
CONFIG_FIELDS = {
    "siteName": "site_name",
    "siteSubtitle": "site_subtitle",
    "defaultPlaylistName": "default_playlist_name",
    "avatarUrl": "avatar_url",
    "backgroundUrl": "background_url",
    "themeConfig": "theme_config",
    "seoKeywords": "seo_keywords",
    "seoDescription": "seo_description",
    "customCss": "custom_css",
    "customJs": "custom_js",
    "hiddenTitle": "hidden_title",
    "copyMode": "copy_mode",
    "hcaptchaEnabled": "hcaptcha_enabled",
    "hcaptchaSiteKey": "hcaptcha_site_key",
    "hcaptchaSecretKey": "hcaptcha_secret_key",
}
# never sent to the public
PRIVATE_FIELDS = {"hcaptchaSecretKey"}


class SiteConfigPatch(BaseModel):
    model_config = ConfigDict(extra="ignore")

    siteName: Optional[str] = None
    siteSubtitle: Optional[str] = None
    defaultPlaylistName: Optional[str] = None
    avatarUrl: Optional[str] = None
    backgroundUrl: Optional[str] = None
    themeConfig: Optional[dict] = None
    seoKeywords: Optional[str] = None
    seoDescription: Optional[str] = None
    customCss: Optional[str] = None
    customJs: Optional[str] = None
    hiddenTitle: Optional[str] = None
    copyMode: Optional[str] = None
    hcaptchaEnabled: Optional[bool] = None
    hcaptchaSiteKey: Optional[str] = None
    hcaptchaSecretKey: Optional[str] = None

    @field_validator("siteName", "defaultPlaylistName")
    @classmethod
    def required_text(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("copyMode")
    @classmethod
    def known_copy_mode(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in COPY_MODES:
            raise ValueError(f"must be one of {', '.join(COPY_MODES)}")
        return v


class StreamerIn(BaseModel):
    name: str
    bilibiliUrl: str = ""

    @field_validator("name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v


def copy_text(title: str, mode: str = "normal") -> str:
    """What lands on the clipboard when a visitor copies a song title."""
    if mode == "song-request":
        return f"{SONG_REQUEST_PREFIX}{title}"
    return title


def _parse(model, data: Any):
    if not isinstance(data, dict):
        raise ValidationError("payload must be an object")
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise from_pydantic(e) from e


def get_site_config(session: Session) -> SiteConfig | None:
    return session.get(SiteConfig, SITE_CONFIG_ID)


def get_copy_mode(session: Session) -> str:
    cfg = get_site_config(session)
    return cfg.copy_mode if cfg and cfg.copy_mode in COPY_MODES else "normal"


def config_to_api(cfg: SiteConfig, include_private: bool = False) -> dict:
    out = {}
    for wire, column in CONFIG_FIELDS.items():
        if wire in PRIVATE_FIELDS and not include_private:
            continue
        out[wire] = getattr(cfg, column)
    out["themeConfig"] = dict(cfg.theme_config or {})
    return out


def update_site_config(session: Session, data: Any) -> SiteConfig:
    patch = _parse(SiteConfigPatch, data)
    cfg = get_site_config(session)
    if not cfg:
        raise NotFoundError("site is not configured yet")
    for wire, value in patch.model_dump(exclude_unset=True).items():
        if value is None:
            continue
        setattr(cfg, CONFIG_FIELDS[wire], value)
    cfg.updated_at = utcnow()
    session.add(cfg)
    commit(session, "update site config")
    session.refresh(cfg)
    return cfg


def get_streamer(session: Session) -> Streamer | None:
    return session.exec(select(Streamer).order_by(Streamer.id).limit(1)).first()


def update_streamer(session: Session, data: Any) -> Streamer:
    body = _parse(StreamerIn, data)
    streamer = get_streamer(session)
    if not streamer:
        streamer = Streamer(name=body.name, bilibili_url=body.bilibiliUrl)
    else:
        streamer.name = body.name
        streamer.bilibili_url = body.bilibiliUrl
        streamer.updated_at = utcnow()
    session.add(streamer)
    commit(session, "update streamer")
    session.refresh(streamer)
    return streamer


def site_meta(session: Session) -> dict:
    cfg = get_site_config(session)
    if not cfg:
        return {}
    meta = config_to_api(cfg)
    streamer = get_streamer(session)
    meta["streamer"] = {"name": streamer.name, "bilibiliUrl": streamer.bilibili_url} if streamer else None
    return meta
