from typing import Optional
from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from songlist import playlist, query
from songlist.auth import require_admin, require_installed
from songlist.db import get_session
from songlist.exports import to_api
from songlist.site import copy_text, get_copy_mode

router = APIRouter(prefix="/api/playlist", tags=["playlist"], dependencies=[Depends(require_installed)])


# Public browsing

@router.get("")
def list_playlist(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    firstLetter: Optional[str] = None,
    language: Optional[str] = None,
    special: Optional[str] = None,
    search: Optional[str] = None,
    session: Session = Depends(get_session),
):
    # raw strings so malformed paging degrades to defaults instead of a 422
    q = query.build_query(page, limit, firstLetter, language, special, search)
    result = query.run_query(session, q)
    mode = get_copy_mode(session)
    songs = []
    for song in result.items:
        rec = to_api(song)
        rec["copyText"] = copy_text(song.title, mode)
        songs.append(rec)
    return {
        "songs": songs,
        "total": result.total,
        "page": result.page,
        "limit": result.page_size,
        "totalPages": result.total_pages,
    }


@router.get("/languages")
def list_languages(session: Session = Depends(get_session)):
    return {"languages": query.distinct_languages(session)}


@router.get("/categories")
def list_categories(session: Session = Depends(get_session)):
    return {"categories": query.distinct_categories(session)}


@router.get("/first-letters")
def list_first_letters(session: Session = Depends(get_session)):
    return {"firstLetters": query.distinct_sort_keys(session)}


@router.get("/tag-cloud")
def tag_cloud(session: Session = Depends(get_session)):
    return query.facets(session)


# Admin

@router.post("/add", dependencies=[Depends(require_admin)])
def add_song(body: dict = Body(...), session: Session = Depends(get_session)):
    song = playlist.add_song(session, body)
    return {"success": True, "song": to_api(song)}


@router.put("/edit/{song_id}", dependencies=[Depends(require_admin)])
def edit_song(song_id: int, body: dict = Body(...), session: Session = Depends(get_session)):
    song = playlist.update_song(session, song_id, body)
    return {"success": True, "song": to_api(song)}


@router.delete("/delete/{song_id}", dependencies=[Depends(require_admin)])
def delete_song(song_id: int, session: Session = Depends(get_session)):
    playlist.delete_song(session, song_id)
    return {"success": True, "message": "Song deleted"}


@router.post("/import", dependencies=[Depends(require_admin)])
def import_playlist(body: dict = Body(...), session: Session = Depends(get_session)):
    summary = playlist.import_songs(session, body.get("songs"), bool(body.get("clearExisting")))
    return {
        "success": True,
        "imported": summary.imported,
        "total": summary.total,
        "failed": [{"index": r.index, "error": r.error} for r in summary.failed],
    }


@router.get("/export", dependencies=[Depends(require_admin)])
def export_playlist(session: Session = Depends(get_session)):
    return {"songs": playlist.export_songs(session)}


@router.delete("/clear", dependencies=[Depends(require_admin)])
def clear_playlist(session: Session = Depends(get_session)):
    removed = playlist.clear_songs(session)
    return {"success": True, "message": "Playlist cleared", "removed": removed}
