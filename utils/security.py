"""
security helpers:
- Argon2 password hashing via argon2-cffi
- Access / refresh token creation and verification via PyJWT

Access tokens carry {id, username} and a short exp. Refresh tokens carry
{id, username, jti} and no exp; they stay usable for renewal only while they
are listed in the refresh token store.
"""
from __future__ import annotations

import enum
import time
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional, Union

import jwt
from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError, VerifyMismatchError


class ConfigurationError(Exception):
    """A signing secret (or other required setting) is missing."""


class PasswordHashingError(Exception):
    """Hashing failed, or a stored hash could not be parsed."""


class PasswordHasher:
    """Salted one-way password hashing (argon2id, salt embedded in the hash)."""

    def __init__(self, hasher: Optional[Argon2Hasher] = None):
        self._ph = hasher or Argon2Hasher()

    def hash(self, password: str) -> str:
        if not isinstance(password, str):
            raise PasswordHashingError("password must be a string")
        try:
            return self._ph.hash(password)
        except HashingError as exc:
            raise PasswordHashingError(str(exc)) from exc

    def verify(self, password: str, password_hash: str) -> bool:
        try:
            return self._ph.verify(password_hash, password)
        except VerifyMismatchError:
            return False
        except InvalidHashError as exc:
            raise PasswordHashingError("stored password hash is malformed") from exc
        except VerificationError:
            return False


@dataclass(frozen=True)
class TokenClaim:
    id: int
    username: str

    def to_payload(self) -> Dict[str, Any]:
        return {"id": self.id, "username": self.username}


class InvalidReason(str, enum.Enum):
    MALFORMED = "malformed"
    EXPIRED = "expired"
    BAD_SIGNATURE = "bad_signature"


@dataclass(frozen=True)
class Valid:
    claim: TokenClaim
    ok = True


@dataclass(frozen=True)
class Invalid:
    reason: InvalidReason
    ok = False


VerifyResult = Union[Valid, Invalid]


@dataclass(frozen=True)
class TokenConfig:
    access_secret: Optional[str]
    refresh_secret: Optional[str]
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(seconds=15)

    @classmethod
    def from_mapping(cls, config) -> "TokenConfig":
        """Build from a Flask config (or any mapping)."""
        return cls(
            access_secret=config.get("ACCESS_TOKEN_SECRET"),
            refresh_secret=config.get("REFRESH_TOKEN_SECRET"),
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            access_ttl=config.get("ACCESS_TOKEN_EXPIRES", timedelta(seconds=15)),
        )


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID)."""
    return str(uuid.uuid4())


def _require_secret(secret: Optional[str], name: str) -> str:
    if not secret:
        raise ConfigurationError(f"{name} is not defined")
    return secret


class TokenIssuer:
    def __init__(self, config: TokenConfig, clock: Callable[[], float] = time.time):
        self.config = config
        self.clock = clock

    @property
    def can_issue_refresh(self) -> bool:
        return bool(self.config.refresh_secret)

    def issue_access(self, claim: TokenClaim) -> str:
        secret = _require_secret(self.config.access_secret, "ACCESS_TOKEN_SECRET")
        now = int(self.clock())
        payload = claim.to_payload()
        payload["iat"] = now
        payload["exp"] = now + int(self.config.access_ttl.total_seconds())
        return jwt.encode(payload, secret, algorithm=self.config.algorithm)

    def issue_refresh(self, claim: TokenClaim) -> str:
        secret = _require_secret(self.config.refresh_secret, "REFRESH_TOKEN_SECRET")
        payload = claim.to_payload()
        payload["iat"] = int(self.clock())
        payload["jti"] = generate_jti()
        return jwt.encode(payload, secret, algorithm=self.config.algorithm)


class TokenVerifier:
    def __init__(self, config: TokenConfig):
        self.config = config

    def verify_access(self, token: str) -> VerifyResult:
        secret = _require_secret(self.config.access_secret, "ACCESS_TOKEN_SECRET")
        return self._verify(token, secret, required=["exp"])

    def verify_refresh(self, token: str) -> VerifyResult:
        secret = _require_secret(self.config.refresh_secret, "REFRESH_TOKEN_SECRET")
        return self._verify(token, secret, required=[])

    def _verify(self, token, secret, required) -> VerifyResult:
        if not isinstance(token, str) or not token:
            return Invalid(InvalidReason.MALFORMED)
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.config.algorithm],
                options={"require": required},
            )
        except jwt.ExpiredSignatureError:
            return Invalid(InvalidReason.EXPIRED)
        except jwt.InvalidSignatureError:
            return Invalid(InvalidReason.BAD_SIGNATURE)
        except jwt.InvalidTokenError:
            return Invalid(InvalidReason.MALFORMED)

        user_id = decoded.get("id")
        username = decoded.get("username")
        if not isinstance(user_id, int) or isinstance(user_id, bool) or not isinstance(username, str):
            return Invalid(InvalidReason.MALFORMED)
        return Valid(TokenClaim(id=user_id, username=username))


def read_expiry(token: str) -> Optional[int]:
    """
    Return the exp claim without checking the signature (client side use only).
    Raises jwt.DecodeError if the token cannot be decoded at all.
    """
    decoded = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
    exp = decoded.get("exp")
    return int(exp) if exp is not None else None
