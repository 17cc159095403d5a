"""
Unit tests for songlist.auth against a real store
"""
from datetime import timedelta

import pytest

from songlist import auth, playlist
from songlist.errors import AuthError, ConflictError
from songlist.models import AdminToken, utcnow


@pytest.fixture
def installed_session(session, setup_payload):
    auth.install(session, setup_payload)
    return session


def expired_token(session, admin_id, value="stale"):
    session.add(AdminToken(token=value, admin_id=admin_id, expires_at=utcnow() - timedelta(hours=1)))
    session.commit()
    return value


class TestWrites:
    """Timestamps written by the services must be accepted by the store"""

    def test_install_then_login(self, installed_session):
        admin, token = auth.login(installed_session, "admin", "secret123")
        assert auth.resolve_token(installed_session, token).id == admin.id

    def test_install_twice(self, installed_session, setup_payload):
        with pytest.raises(ConflictError):
            auth.install(installed_session, setup_payload)

    def test_add_and_update_song(self, session):
        song = playlist.add_song(session, {"songName": "さくら", "singer": "A", "language": "Japanese", "category": "Pop"})
        assert song.sort_key == "S"
        updated = playlist.update_song(session, song.id, {"songName": "Sakura", "singer": "A",
                                                          "language": "Japanese", "category": "Pop"})
        assert updated.updated_at >= updated.created_at

    def test_login_wrong_password(self, installed_session):
        with pytest.raises(AuthError):
            auth.login(installed_session, "admin", "wrong")


class TestTokenExpiry:

    def test_expired_token_is_rejected_and_removed(self, installed_session):
        admin, _ = auth.login(installed_session, "admin", "secret123")
        stale = expired_token(installed_session, admin.id)
        assert auth.resolve_token(installed_session, stale) is None
        assert installed_session.get(AdminToken, stale) is None

    def test_login_purges_abandoned_tokens(self, installed_session):
        admin, _ = auth.login(installed_session, "admin", "secret123")
        expired_token(installed_session, admin.id, "old-1")
        expired_token(installed_session, admin.id, "old-2")
        _, fresh = auth.login(installed_session, "admin", "secret123")
        installed_session.expire_all()
        assert installed_session.get(AdminToken, "old-1") is None
        assert installed_session.get(AdminToken, "old-2") is None
        assert installed_session.get(AdminToken, fresh) is not None

    def test_purge_keeps_live_tokens(self, installed_session):
        admin, live = auth.login(installed_session, "admin", "secret123")
        expired_token(installed_session, admin.id)
        assert auth.purge_expired_tokens(installed_session) == 1
        installed_session.commit()
        assert installed_session.get(AdminToken, live) is not None
