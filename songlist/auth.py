import base64
import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import pydantic
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import func
from sqlmodel import Session, select

from songlist.config import PASSWORD_MIN_LENGTH, PBKDF2_ITERATIONS, TOKEN_TTL_HOURS
from songlist.db import commit, get_session
from songlist.errors import AuthError, ConflictError, NotInstalledError, ValidationError, from_pydantic
from songlist.models import Admin, AdminToken, SiteConfig, Streamer, utcnow
from songlist.site import SITE_CONFIG_ID

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


# Password hashing

def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return "pbkdf2_sha256${}${}${}".format(
        iterations,
        base64.b64encode(salt).decode("ascii"),
        base64.b64encode(digest).decode("ascii"),
    )


def verify_password(password: str, encoded: str) -> bool:
    try:
        algo, iterations, salt, expected = encoded.split("$")
        if algo != "pbkdf2_sha256":
            return False
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), base64.b64decode(salt), int(iterations))
    except (ValueError, TypeError):
        return False
    return hmac.compare_digest(digest, base64.b64decode(expected))


# Setup

class SetupIn(BaseModel):
    siteName: str
    defaultPlaylistName: str
    adminUsername: str
    adminPassword: str
    streamerName: str
    bilibiliUrl: str = ""
    siteSubtitle: str = ""
    avatarUrl: str = ""
    backgroundUrl: str = ""
    themeConfig: dict = {}
    seoKeywords: str = ""
    seoDescription: str = ""

    @field_validator("siteName", "defaultPlaylistName", "adminUsername", "streamerName")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("adminPassword")
    @classmethod
    def long_enough(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError(f"must be at least {PASSWORD_MIN_LENGTH} characters")
        return v


def is_installed(session: Session) -> bool:
    return session.exec(select(func.count()).select_from(Admin)).one() > 0


def install(session: Session, data: Any) -> None:
    """Create the first admin, the site config row and the streamer in one go."""
    if is_installed(session):
        raise ConflictError("site is already installed")
    if not isinstance(data, dict):
        raise ValidationError("payload must be an object")
    try:
        body = SetupIn.model_validate(data)
    except pydantic.ValidationError as e:
        raise from_pydantic(e) from e

    session.add(Admin(username=body.adminUsername, password_hash=hash_password(body.adminPassword)))
    session.add(SiteConfig(
        id=SITE_CONFIG_ID,
        site_name=body.siteName,
        site_subtitle=body.siteSubtitle,
        default_playlist_name=body.defaultPlaylistName,
        avatar_url=body.avatarUrl,
        background_url=body.backgroundUrl,
        theme_config=body.themeConfig,
        seo_keywords=body.seoKeywords,
        seo_description=body.seoDescription,
    ))
    session.add(Streamer(name=body.streamerName, bilibili_url=body.bilibiliUrl))
    commit(session, "install site")
    logger.info("Setup complete for site %r (admin %r)", body.siteName, body.adminUsername)


def require_installed(session: Session = Depends(get_session)) -> None:
    if not is_installed(session):
        raise NotInstalledError("site is not installed yet, run setup first")


# Login / tokens

def login(session: Session, username: Optional[str], password: Optional[str]) -> tuple[Admin, str]:
    if not username or not password:
        raise ValidationError("username and password are required")
    admin = session.exec(select(Admin).where(Admin.username == username)).first()
    if not admin or not verify_password(password, admin.password_hash):
        logger.warning("Failed login for %r", username)
        raise AuthError("invalid username or password")

    now = utcnow()
    purged = purge_expired_tokens(session, now)
    if purged:
        logger.info("Purged %d expired tokens", purged)

    token = secrets.token_urlsafe(32)
    session.add(AdminToken(
        token=token,
        admin_id=admin.id,
        expires_at=now + timedelta(hours=TOKEN_TTL_HOURS),
    ))
    commit(session, "log in")
    session.refresh(admin)
    logger.info("Admin %r logged in", admin.username)
    return admin, token


def _as_utc(value: datetime) -> datetime:
    # stores without timezone support hand back naive UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def purge_expired_tokens(session: Session, now: Optional[datetime] = None) -> int:
    """Delete expired token rows. The caller commits."""
    now = now or utcnow()
    rows = session.exec(select(AdminToken).where(AdminToken.expires_at <= now)).all()
    for row in rows:
        session.delete(row)
    return len(rows)


def resolve_token(session: Session, token: Optional[str]) -> Optional[Admin]:
    if not token:
        return None
    row = session.get(AdminToken, token)
    if not row:
        return None
    if _as_utc(row.expires_at) <= utcnow():
        session.delete(row)
        try:
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Could not purge expired token")
        return None
    return session.get(Admin, row.admin_id)


def logout(session: Session, token: Optional[str]) -> None:
    row = session.get(AdminToken, token) if token else None
    if row:
        session.delete(row)
        commit(session, "log out")


def change_password(session: Session, admin: Admin, old_password: Optional[str], new_password: Optional[str]) -> None:
    if not old_password or not new_password:
        raise ValidationError("old and new password are required")
    if len(new_password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"new password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not verify_password(old_password, admin.password_hash):
        raise ValidationError("old password is incorrect")
    admin.password_hash = hash_password(new_password)
    session.add(admin)
    commit(session, "change password")
    logger.info("Password changed for admin %r", admin.username)


# FastAPI dependencies

def bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> Optional[str]:
    return credentials.credentials if credentials else None


def current_admin(
    token: Optional[str] = Depends(bearer_token),
    session: Session = Depends(get_session),
) -> Optional[Admin]:
    return resolve_token(session, token)


def require_admin(admin: Optional[Admin] = Depends(current_admin)) -> Admin:
    if not admin:
        raise AuthError("not authorized, please log in")
    return admin
