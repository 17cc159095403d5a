import logging
from dataclasses import dataclass
from typing import Any, List, Optional
import pydantic
from sqlmodel import Session, select

from songlist.db import commit
from songlist.errors import NotFoundError, ValidationError, from_pydantic
from songlist.exports import SongRecord, to_record
from songlist.models import Song, utcnow
from songlist.query import playlist_order
from songlist.transliterate import derive_sort_key

logger = logging.getLogger(__name__)


@dataclass
class RowResult:
    index: int
    song_id: Optional[int] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ImportSummary:
    rows: List[RowResult]

    @property
    def total(self) -> int:
        return len(self.rows)

    @property
    def imported(self) -> int:
        return sum(1 for r in self.rows if r.ok)

    @property
    def failed(self) -> List[RowResult]:
        return [r for r in self.rows if not r.ok]


def validate_record(data: Any) -> SongRecord:
    if not isinstance(data, dict):
        raise ValidationError("song must be an object")
    try:
        return SongRecord.model_validate(data)
    except pydantic.ValidationError as e:
        raise from_pydantic(e) from e


def _apply(song: Song, rec: SongRecord) -> Song:
    song.title = rec.songName
    song.artist = rec.singer
    song.language = rec.language
    song.genre = rec.category
    song.is_featured = rec.special
    # recomputed on every write; an explicit letter still wins
    song.sort_key = derive_sort_key(rec.songName, rec.firstLetter)
    song.clip_url = rec.bilibiliClipUrl
    return song


def get_song(session: Session, song_id: int) -> Song:
    song = session.get(Song, song_id)
    if not song:
        raise NotFoundError(f"song {song_id} not found")
    return song


def add_song(session: Session, data: Any) -> Song:
    rec = validate_record(data)
    song = _apply(Song(), rec)
    session.add(song)
    commit(session, "add song")
    session.refresh(song)
    return song


def update_song(session: Session, song_id: int, data: Any) -> Song:
    rec = validate_record(data)
    song = get_song(session, song_id)
    _apply(song, rec)
    song.updated_at = utcnow()
    session.add(song)
    commit(session, "update song")
    session.refresh(song)
    return song


def delete_song(session: Session, song_id: int) -> None:
    song = get_song(session, song_id)
    session.delete(song)
    commit(session, "delete song")


def _delete_all(session: Session) -> int:
    songs = session.exec(select(Song)).all()
    for song in songs:
        session.delete(song)
    return len(songs)


def clear_songs(session: Session) -> int:
    removed = _delete_all(session)
    commit(session, "clear playlist")
    logger.info("Playlist cleared (%d songs removed)", removed)
    return removed


def import_songs(session: Session, records: Any, clear_existing: bool = False) -> ImportSummary:
    """
    Best-effort bulk import. Each row is validated on its own; bad rows are
    reported and skipped. The optional clear and all inserts share one
    transaction, so readers never see an emptied playlist in between.
    """
    if not isinstance(records, list):
        raise ValidationError("songs must be a list")

    if clear_existing:
        removed = _delete_all(session)
        session.flush()
        logger.info("Import: removed %d existing songs", removed)

    rows: List[RowResult] = []
    added = []
    for i, data in enumerate(records):
        try:
            rec = validate_record(data)
        except ValidationError as e:
            logger.warning("Import: skipping row %d (%s)", i, e.message)
            rows.append(RowResult(index=i, error=e.message))
            continue
        song = _apply(Song(), rec)
        session.add(song)
        added.append((i, song))
        rows.append(RowResult(index=i))

    commit(session, "import playlist")
    by_index = {i: song.id for i, song in added}
    for r in rows:
        if r.ok:
            r.song_id = by_index[r.index]

    summary = ImportSummary(rows)
    logger.info("Import finished: %d/%d songs imported", summary.imported, summary.total)
    return summary


def export_songs(session: Session) -> List[dict]:
    songs = session.exec(select(Song).order_by(*playlist_order())).all()
    return [to_record(s) for s in songs]
