"""Interchange format shared by import, export and the public listing.

A playlist file is a JSON array of objects keyed
``songName, singer, language, category, special, firstLetter`` with an
optional ``bilibiliClipUrl``.
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_validator

from songlist.models import Song


class SongRecord(BaseModel):
    # spreadsheet exports carry numeric cells as numbers: 1989, 5566
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=False, coerce_numbers_to_str=True)

    songName: str
    singer: str
    language: str
    category: str
    special: bool = False
    firstLetter: Optional[str] = None
    bilibiliClipUrl: Optional[str] = None

    @field_validator("songName", "language", "category")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v

    @field_validator("special", mode="before")
    @classmethod
    def null_is_false(cls, v):
        return False if v is None else v

    @field_validator("firstLetter", mode="before")
    @classmethod
    def hint_must_be_text(cls, v):
        # an unusable letter is dropped; the key is derived from the title instead
        return v if isinstance(v, str) else None

    @field_validator("bilibiliClipUrl")
    @classmethod
    def empty_clip_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


def to_record(song: Song) -> dict:
    rec = {
        "songName": song.title,
        "singer": song.artist,
        "language": song.language,
        "category": song.genre,
        "special": bool(song.is_featured),
        "firstLetter": song.sort_key,
    }
    if song.clip_url:
        rec["bilibiliClipUrl"] = song.clip_url
    return rec


def to_api(song: Song) -> dict:
    rec = to_record(song)
    rec["bilibiliClipUrl"] = song.clip_url
    rec["id"] = song.id
    rec["createdAt"] = song.created_at.isoformat() if song.created_at else None
    rec["updatedAt"] = song.updated_at.isoformat() if song.updated_at else None
    return rec
