import time
from datetime import timedelta

import jwt
import pytest

from utils.security import (
    ConfigurationError,
    Invalid,
    InvalidReason,
    PasswordHashingError,
    TokenClaim,
    TokenConfig,
    TokenIssuer,
    TokenVerifier,
    Valid,
    read_expiry,
)
from tests.conftest import ACCESS_SECRET, REFRESH_SECRET, fast_hasher

CLAIM = TokenClaim(id=7, username="alice")


def test_hash_is_salted_and_verifies():
    hasher = fast_hasher()
    h1 = hasher.hash("pw123")
    h2 = hasher.hash("pw123")
    assert h1 != "pw123"
    assert h1 != h2
    assert hasher.verify("pw123", h1)
    assert not hasher.verify("nope", h1)


def test_hash_rejects_non_string():
    with pytest.raises(PasswordHashingError):
        fast_hasher().hash(None)


def test_verify_with_malformed_hash_is_an_error_not_false():
    with pytest.raises(PasswordHashingError):
        fast_hasher().verify("pw123", "not-a-hash")


def test_missing_access_secret_fails_when_used():
    config = TokenConfig(access_secret=None, refresh_secret=REFRESH_SECRET)
    issuer = TokenIssuer(config)
    assert issuer.can_issue_refresh
    issuer.issue_refresh(CLAIM)
    with pytest.raises(ConfigurationError):
        issuer.issue_access(CLAIM)
    with pytest.raises(ConfigurationError):
        TokenVerifier(config).verify_access("a.b.c")


@pytest.mark.parametrize("refresh", [None, ""])
def test_missing_refresh_secret_fails_when_used(refresh):
    config = TokenConfig(access_secret=ACCESS_SECRET, refresh_secret=refresh)
    issuer = TokenIssuer(config)
    assert not issuer.can_issue_refresh
    issuer.issue_access(CLAIM)
    with pytest.raises(ConfigurationError):
        issuer.issue_refresh(CLAIM)
    with pytest.raises(ConfigurationError):
        TokenVerifier(config).verify_refresh("a.b.c")


def test_access_token_round_trip(token_config):
    token = TokenIssuer(token_config).issue_access(CLAIM)
    result = TokenVerifier(token_config).verify_access(token)
    assert result == Valid(CLAIM)
    assert result.ok


def test_access_token_expires(token_config):
    issuer = TokenIssuer(token_config, clock=lambda: time.time() - 60)
    result = TokenVerifier(token_config).verify_access(issuer.issue_access(CLAIM))
    assert result == Invalid(InvalidReason.EXPIRED)
    assert not result.ok


def test_access_token_lifetime_follows_config():
    config = TokenConfig(ACCESS_SECRET, REFRESH_SECRET, access_ttl=timedelta(minutes=10))
    token = TokenIssuer(config, clock=lambda: 1_000).issue_access(CLAIM)
    payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    assert payload["exp"] - payload["iat"] == 600
    assert payload["id"] == 7 and payload["username"] == "alice"


def test_refresh_token_has_no_expiry_and_is_unique(token_config):
    issuer = TokenIssuer(token_config)
    t1, t2 = issuer.issue_refresh(CLAIM), issuer.issue_refresh(CLAIM)
    assert t1 != t2
    assert read_expiry(t1) is None
    assert TokenVerifier(token_config).verify_refresh(t1) == Valid(CLAIM)


def test_secrets_are_not_interchangeable(token_config):
    issuer, verifier = TokenIssuer(token_config), TokenVerifier(token_config)
    assert verifier.verify_refresh(issuer.issue_access(CLAIM)) == Invalid(InvalidReason.BAD_SIGNATURE)
    assert verifier.verify_access(issuer.issue_refresh(CLAIM)) == Invalid(InvalidReason.BAD_SIGNATURE)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", None])
def test_malformed_tokens(token_config, token):
    assert TokenVerifier(token_config).verify_access(token) == Invalid(InvalidReason.MALFORMED)


def test_token_without_identity_claim_is_malformed(token_config):
    token = jwt.encode({"name": "alice"}, REFRESH_SECRET, algorithm="HS256")
    assert TokenVerifier(token_config).verify_refresh(token) == Invalid(InvalidReason.MALFORMED)
