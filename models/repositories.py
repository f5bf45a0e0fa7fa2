"""
Repositories used by the session controller.

Two implementations of each store:
- Sql*: backed by DBStorage; uniqueness comes from the table constraints
- InMemory*: dict + lock, atomic insert-if-absent; used by tests and tooling

Both raise DuplicateError on a uniqueness violation and RepositoryError on
any other storage failure.
"""
from __future__ import annotations

import itertools
import threading
from typing import Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.user import User
from models.refresh_token import RefreshToken


class RepositoryError(Exception):
    """Storage failed for a reason other than a duplicate."""


class DuplicateError(RepositoryError):
    """Insert rejected because the key already exists."""


class UserRepository(Protocol):
    def get_by_name(self, name: str) -> Optional[User]: ...

    def add(self, name: str, password_hash: str) -> User: ...


class RefreshTokenRepository(Protocol):
    def add(self, token: str, user_id: int) -> None: ...

    def exists(self, token: str) -> bool: ...

    def delete(self, token: str) -> None: ...


class SqlUserRepository:
    def __init__(self, storage):
        self.storage = storage

    def get_by_name(self, name: str) -> Optional[User]:
        try:
            session = self.storage.get_session()
            return session.query(User).filter(User.name == name).first()
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc

    def add(self, name: str, password_hash: str) -> User:
        user = User(name=name, password=password_hash)
        self.storage.new(user)
        try:
            self.storage.save()
        except IntegrityError as exc:
            raise DuplicateError(f"user {name!r} already exists") from exc
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc
        return user


class SqlRefreshTokenRepository:
    def __init__(self, storage):
        self.storage = storage

    def add(self, token: str, user_id: int) -> None:
        if self.exists(token):
            raise DuplicateError("refresh token already stored")
        self.storage.new(RefreshToken(token=token, user_id=user_id))
        try:
            self.storage.save()
        except IntegrityError as exc:
            raise DuplicateError("refresh token already stored") from exc
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc

    def exists(self, token: str) -> bool:
        try:
            return self.storage.get(RefreshToken, token) is not None
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc

    def delete(self, token: str) -> None:
        session = self.storage.get_session()
        try:
            session.query(RefreshToken).filter(RefreshToken.token == token).delete()
            self.storage.save()
        except SQLAlchemyError as exc:
            raise RepositoryError(str(exc)) from exc


class InMemoryUserRepository:
    def __init__(self):
        self._users: dict[str, User] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def get_by_name(self, name: str) -> Optional[User]:
        with self._lock:
            return self._users.get(name)

    def add(self, name: str, password_hash: str) -> User:
        with self._lock:
            if name in self._users:
                raise DuplicateError(f"user {name!r} already exists")
            user = User(id=next(self._ids), name=name, password=password_hash)
            self._users[name] = user
            return user


class InMemoryRefreshTokenRepository:
    def __init__(self):
        self._tokens: dict[str, int] = {}
        self._lock = threading.Lock()

    def add(self, token: str, user_id: int) -> None:
        with self._lock:
            if token in self._tokens:
                raise DuplicateError("refresh token already stored")
            self._tokens[token] = user_id

    def exists(self, token: str) -> bool:
        with self._lock:
            return token in self._tokens

    def delete(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def __len__(self):
        return len(self._tokens)
