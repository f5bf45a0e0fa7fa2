import pytest

from client import RenewalError, SessionManager
from models import storage
from models.repositories import DuplicateError, SqlRefreshTokenRepository, SqlUserRepository
from tests.conftest import FakeTimer, register_and_login


def test_sql_user_repository_enforces_unique_names(app):
    users = SqlUserRepository(storage)
    alice = users.add("alice", "hash")
    assert isinstance(alice.id, int)
    with pytest.raises(DuplicateError):
        users.add("alice", "other-hash")
    # the failed insert was rolled back; the session is still usable
    assert users.get_by_name("alice").password == "hash"
    assert users.get_by_name("bob") is None


def test_sql_refresh_token_repository(app):
    user = SqlUserRepository(storage).add("alice", "hash")
    tokens = SqlRefreshTokenRepository(storage)
    tokens.add("t1", user.id)
    assert tokens.exists("t1")
    with pytest.raises(DuplicateError):
        tokens.add("t1", user.id)
    tokens.delete("t1")
    tokens.delete("t1")
    assert not tokens.exists("t1")


def test_session_manager_against_the_api(client):
    """The client renews through POST /token and ends the session once the token is revoked."""

    def renew(refresh_token):
        res = client.post("/token", json={"token": refresh_token})
        if res.status_code != 200:
            raise RenewalError(f"{res.status_code}")
        return res.get_json()["accesstoken"]

    tokens = register_and_login(client)
    manager = SessionManager(renew=renew, timer_factory=FakeTimer)
    manager.login(tokens["accesstoken"], tokens["refreshtoken"])

    assert FakeTimer.created[-1].fire() is True
    headers = {"Authorization": f"Bearer {manager.access_token}"}
    assert client.get("/reading-list", headers=headers).status_code == 200

    client.delete("/logout", json={"token": tokens["refreshtoken"]})
    assert FakeTimer.created[-1].fire() is False
    assert not manager.is_logged_in
