"""
Session controller: registration, login, access-token renewal and logout.

The controller only talks to the injected repositories, password hasher,
token issuer and verifier, so the same code runs against SQL storage in the
app and against in-memory stores in tests.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from models.repositories import (
    DuplicateError,
    RefreshTokenRepository,
    RepositoryError,
    UserRepository,
)
from models.user import User
from services.errors import (
    ConflictError,
    ForbiddenError,
    InternalError,
    MissingRefreshSecretError,
    UnauthorizedError,
    UnknownUserError,
)
from utils.security import (
    PasswordHasher,
    PasswordHashingError,
    TokenClaim,
    TokenIssuer,
    TokenVerifier,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPair:
    access: str
    refresh: str


class SessionController:
    def __init__(
        self,
        users: UserRepository,
        refresh_tokens: RefreshTokenRepository,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
        verifier: TokenVerifier,
    ):
        self.users = users
        self.refresh_tokens = refresh_tokens
        self.hasher = hasher
        self.issuer = issuer
        self.verifier = verifier

    def register(self, name: str, password: str) -> User:
        """Create a user; ConflictError if the name is taken."""
        try:
            if self.users.get_by_name(name) is not None:
                raise ConflictError("User already exists")
            pw_hash = self.hasher.hash(password)
            # the store's unique constraint settles concurrent registrations
            user = self.users.add(name, pw_hash)
        except DuplicateError:
            raise ConflictError("User already exists")
        except (RepositoryError, PasswordHashingError) as exc:
            logger.error("register failed for %r: %s", name, exc)
            raise InternalError() from exc

        logger.info("registered user id=%s", user.id)
        return user

    def login(self, name: str, password: str) -> TokenPair:
        """
        Check credentials and mint an access/refresh pair.
        The refresh token is persisted only after both tokens exist.
        """
        try:
            user = self.users.get_by_name(name)
        except RepositoryError as exc:
            raise InternalError() from exc
        if user is None:
            logger.info("login rejected: unknown user")
            raise UnknownUserError()

        try:
            ok = self.hasher.verify(password, user.password)
        except PasswordHashingError as exc:
            logger.error("login failed for user id=%s: %s", user.id, exc)
            raise InternalError() from exc
        if not ok:
            logger.info("login rejected: bad password for user id=%s", user.id)
            raise UnauthorizedError("Not Allowed")

        if not self.issuer.can_issue_refresh:
            logger.error("login refused for user id=%s: REFRESH_TOKEN_SECRET is not defined", user.id)
            raise MissingRefreshSecretError()

        # a missing access secret raises ConfigurationError here, before any write
        claim = TokenClaim(id=user.id, username=user.name)
        access = self.issuer.issue_access(claim)
        refresh = self.issuer.issue_refresh(claim)
        try:
            self.refresh_tokens.add(refresh, user.id)
        except RepositoryError as exc:
            raise InternalError() from exc

        logger.info("user id=%s logged in", user.id)
        return TokenPair(access=access, refresh=refresh)

    def renew(self, refresh_token: Optional[str]) -> str:
        """Exchange a stored, correctly signed refresh token for a new access token."""
        if not refresh_token:
            raise UnauthorizedError("Refresh token required")

        try:
            known = self.refresh_tokens.exists(refresh_token)
        except RepositoryError as exc:
            raise InternalError() from exc
        if not known:
            logger.info("renewal rejected: refresh token not in store")
            raise ForbiddenError("Invalid refresh token")

        result = self.verifier.verify_refresh(refresh_token)
        if not result.ok:
            logger.info("renewal rejected: %s", result.reason.value)
            raise ForbiddenError("Invalid refresh token")

        return self.issuer.issue_access(result.claim)

    def logout(self, refresh_token: Optional[str]) -> None:
        """Revoke a refresh token. Unknown or missing tokens are not an error."""
        if not refresh_token:
            return
        try:
            self.refresh_tokens.delete(refresh_token)
        except RepositoryError as exc:
            raise InternalError() from exc
        logger.info("refresh token revoked")
