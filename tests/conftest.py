"""
Shared fixtures: every test gets a fresh in-memory database.
"""
import os

# must be set before songlist.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("PBKDF2_ITERATIONS", "1000")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from songlist.app import app
from songlist.db import get_session, init_db
from songlist.models import Song
from songlist.transliterate import derive_sort_key

SETUP_PAYLOAD = {
    "siteName": "Sakura's Songbook",
    "defaultPlaylistName": "Sakura's Playlist",
    "adminUsername": "admin",
    "adminPassword": "secret123",
    "streamerName": "Sakura",
    "bilibiliUrl": "https://space.bilibili.com/1",
    "themeConfig": {"primaryColor": "#FF6B9D", "secondaryColor": "#7B68EE"},
}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as s:
        yield s


@pytest.fixture
def make_song(session):
    """Insert a song directly, bypassing validation."""
    def _make(title, artist="", language="Chinese", genre="Pop", featured=False, sort_key=None, clip_url=None):
        song = Song(
            title=title,
            artist=artist,
            language=language,
            genre=genre,
            is_featured=featured,
            sort_key=sort_key or derive_sort_key(title),
            clip_url=clip_url,
        )
        session.add(song)
        session.commit()
        session.refresh(song)
        return song
    return _make


@pytest.fixture
def client(engine):
    """Test client bound to the in-memory database"""
    def _session_override():
        with Session(engine) as s:
            yield s

    app.dependency_overrides[get_session] = _session_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def setup_payload():
    return dict(SETUP_PAYLOAD)


@pytest.fixture
def installed(client, setup_payload):
    response = client.post("/api/setup/install", json=setup_payload)
    assert response.status_code == 200
    return client


@pytest.fixture
def auth_headers(installed):
    response = installed.post("/api/auth/login", json={"username": "admin", "password": "secret123"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['token']}"}
