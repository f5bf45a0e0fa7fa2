"""
Client side of the session: keeps the token pair, and renews the access
token a few seconds before it expires by calling POST /token.

A failed renewal ends the session quietly; nothing else watches token
validity, so this is how an expired session is noticed.
"""
from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

import jwt
import requests

from utils.security import read_expiry
from .token_storage import ACCESS_KEY, REFRESH_KEY, MemoryTokenStorage, TokenStorage

logger = logging.getLogger(__name__)

# renew this many seconds before the access token's exp
RENEWAL_MARGIN_SECONDS = 5.0


class RenewalError(Exception):
    """POST /token did not produce a new access token."""


def http_renewer(base_url: str, session: Optional[requests.Session] = None,
                 timeout: float = 10.0) -> Callable[[str], str]:
    """Return a callable that exchanges a refresh token at {base_url}/token."""
    http = session or requests.Session()
    url = f"{base_url.rstrip('/')}/token"

    def renew(refresh_token: str) -> str:
        try:
            response = http.post(url, json={"token": refresh_token}, timeout=timeout)
            response.raise_for_status()
            return response.json()["accesstoken"]
        except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
            raise RenewalError(str(exc)) from exc

    return renew


class SessionManager:
    def __init__(
        self,
        renew: Callable[[str], str],
        storage: Optional[TokenStorage] = None,
        timer_factory=threading.Timer,
        clock: Callable[[], float] = time.time,
        margin: float = RENEWAL_MARGIN_SECONDS,
    ):
        self.renew = renew
        self.storage = storage if storage is not None else MemoryTokenStorage()
        self.timer_factory = timer_factory
        self.clock = clock
        self.margin = margin
        self.is_logged_in = False
        self._timer = None
        # bumped by login() and logout(); a renewal started under an older epoch
        # must not touch the current session
        self._epoch = 0
        self._lock = threading.RLock()

    @classmethod
    def for_api(cls, base_url: str, session: Optional[requests.Session] = None, **kwargs) -> "SessionManager":
        return cls(renew=http_renewer(base_url, session=session), **kwargs)

    @property
    def access_token(self) -> Optional[str]:
        return self.storage.get(ACCESS_KEY)

    @property
    def refresh_token(self) -> Optional[str]:
        return self.storage.get(REFRESH_KEY)

    def login(self, access_token: str, refresh_token: str) -> None:
        with self._lock:
            self._epoch += 1
            self.storage.set(ACCESS_KEY, access_token)
            self.storage.set(REFRESH_KEY, refresh_token)
            self.is_logged_in = True
            self._schedule(access_token)

    def logout(self) -> None:
        with self._lock:
            self._epoch += 1
            self.storage.remove(ACCESS_KEY)
            self.storage.remove(REFRESH_KEY)
            self.is_logged_in = False
            self._cancel_timer()

    def restore(self) -> bool:
        """
        Resume from stored tokens (process start / page load).
        Unexpired access token: schedule renewal. Expired: one renewal attempt.
        """
        token = self.access_token
        if not token:
            return False
        try:
            exp = read_expiry(token)
        except jwt.DecodeError:
            self.logout()
            return False

        if exp is not None and exp > self.clock():
            with self._lock:
                self.is_logged_in = True
                self._schedule(token)
            return True
        return self.refresh()

    def refresh(self) -> bool:
        """Renew the access token now; on failure the session ends."""
        with self._lock:
            epoch = self._epoch
            refresh_token = self.refresh_token
        if not refresh_token:
            self.logout()
            return False

        try:
            new_access = self.renew(refresh_token)
        except RenewalError as exc:
            with self._lock:
                if epoch != self._epoch:
                    logger.debug("ignoring failed renewal from a previous session")
                    return False
                logger.warning("Failed to refresh access token: %s", exc)
                self.logout()
            return False

        with self._lock:
            if epoch != self._epoch:
                logger.debug("discarding renewal from a previous session")
                return False
            self.storage.set(ACCESS_KEY, new_access)
            self.is_logged_in = True
            self._schedule(new_access)
        return True

    def close(self) -> None:
        """Stop the renewal timer, keeping the stored tokens."""
        with self._lock:
            self._cancel_timer()

    def _schedule(self, access_token: str) -> None:
        try:
            exp = read_expiry(access_token)
        except jwt.DecodeError:
            exp = None
        if exp is None:
            logger.warning("access token has no readable expiry, logging out")
            self.logout()
            return

        delay = max(0.0, exp - self.clock() - self.margin)
        self._cancel_timer()
        timer = self.timer_factory(delay, self.refresh)
        timer.daemon = True
        self._timer = timer
        timer.start()
        logger.debug("access token renewal scheduled in %.1fs", delay)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
