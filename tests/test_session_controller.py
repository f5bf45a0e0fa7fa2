import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from models.repositories import RepositoryError
from services.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    MissingRefreshSecretError,
    UnauthorizedError,
    UnknownUserError,
)
from utils.security import TokenClaim, TokenConfig, TokenIssuer


def test_register_twice_conflicts(controller):
    user = controller.register("alice", "pw123")
    assert user.id == 1 and user.name == "alice"
    assert user.password != "pw123"
    with pytest.raises(ConflictError):
        controller.register("alice", "other")
    assert controller.users.get_by_name("alice").password == user.password


def test_login_ok_and_bad_password(controller):
    controller.register("alice", "pw123")
    pair = controller.login("alice", "pw123")
    assert pair.access and pair.refresh
    assert controller.refresh_tokens.exists(pair.refresh)
    with pytest.raises(UnauthorizedError):
        controller.login("alice", "pw124")


def test_login_unknown_user(controller):
    with pytest.raises(UnknownUserError) as exc:
        controller.login("nobody", "pw")
    assert exc.value.status_code == 400


def test_each_login_is_its_own_session(controller):
    controller.register("alice", "pw123")
    a = controller.login("alice", "pw123")
    b = controller.login("alice", "pw123")
    assert a.refresh != b.refresh
    assert len(controller.refresh_tokens) == 2


def test_renew_returns_new_access_token_and_keeps_refresh(controller):
    controller.register("alice", "pw123")
    pair = controller.login("alice", "pw123")
    access = controller.renew(pair.refresh)
    result = controller.verifier.verify_access(access)
    assert result.ok and result.claim == TokenClaim(id=1, username="alice")
    assert controller.refresh_tokens.exists(pair.refresh)


@pytest.mark.parametrize("token", [None, ""])
def test_renew_without_token_is_unauthorized(controller, token):
    with pytest.raises(UnauthorizedError):
        controller.renew(token)


def test_renew_unknown_token_is_forbidden(controller):
    forged = controller.issuer.issue_refresh(TokenClaim(id=1, username="alice"))
    with pytest.raises(ForbiddenError):
        controller.renew(forged)


def test_renew_stored_but_badly_signed_token_is_forbidden(controller, token_config):
    bogus = "not.a.jwt"
    controller.refresh_tokens.add(bogus, 1)
    with pytest.raises(ForbiddenError):
        controller.renew(bogus)


def test_logout_revokes_refresh_token(controller):
    controller.register("alice", "pw123")
    pair = controller.login("alice", "pw123")
    controller.logout(pair.refresh)
    # still correctly signed, but no longer listed
    assert controller.verifier.verify_refresh(pair.refresh).ok
    with pytest.raises(ForbiddenError):
        controller.renew(pair.refresh)


def test_logout_is_idempotent(controller):
    controller.register("alice", "pw123")
    pair = controller.login("alice", "pw123")
    assert controller.logout(pair.refresh) is None
    assert controller.logout(pair.refresh) is None
    assert controller.logout(None) is None


def test_concurrent_registration_has_exactly_one_winner(controller):
    barrier = threading.Barrier(2)

    def attempt(password):
        barrier.wait()
        try:
            controller.register("bob", password)
            return "ok"
        except ConflictError:
            return "conflict"

    for _ in range(5):
        controller.users._users.pop("bob", None)
        with ThreadPoolExecutor(max_workers=2) as pool:
            outcomes = sorted(pool.map(attempt, ["pw-a", "pw-b"]))
        assert outcomes == ["conflict", "ok"]


class BrokenTokens:
    def add(self, token, user_id):
        raise RepositoryError("disk full")

    def exists(self, token):
        raise RepositoryError("disk full")

    def delete(self, token):
        raise RepositoryError("disk full")


def test_storage_failures_are_internal(controller):
    controller.register("alice", "pw123")
    controller.refresh_tokens = BrokenTokens()
    with pytest.raises(InternalError):
        controller.login("alice", "pw123")
    with pytest.raises(InternalError):
        controller.renew("anything")
    with pytest.raises(InternalError):
        controller.logout("anything")


class ExplodingIssuer(TokenIssuer):
    def issue_refresh(self, claim):
        raise RuntimeError("signing failed")


def test_no_refresh_token_is_stored_when_minting_fails(controller, token_config):
    controller.register("alice", "pw123")
    controller.issuer = ExplodingIssuer(token_config)
    with pytest.raises(RuntimeError):
        controller.login("alice", "pw123")
    assert len(controller.refresh_tokens) == 0


def test_login_without_refresh_secret_is_refused_before_storing(controller, token_config):
    controller.register("alice", "pw123")
    controller.issuer = TokenIssuer(TokenConfig(access_secret=token_config.access_secret, refresh_secret=None))
    with pytest.raises(UnauthorizedError):
        controller.login("alice", "wrong")
    with pytest.raises(MissingRefreshSecretError) as exc:
        controller.login("alice", "pw123")
    assert exc.value.status_code == 400
    assert exc.value.message == "Cannot find Refresh Token"
    assert len(controller.refresh_tokens) == 0
