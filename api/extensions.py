"""
Per-app singletons kept in app.extensions["libbuddy"]:
the session controller, the response cache and the upstream clients.

The session controller is built on first use. Signing secrets are checked
when a token is minted or verified, so registration works without them.
"""
from __future__ import annotations

from flask import current_app

from models import storage
from models.repositories import SqlRefreshTokenRepository, SqlUserRepository
from services.session import SessionController
from utils.cache import ResponseCache
from utils.security import PasswordHasher, TokenConfig, TokenIssuer, TokenVerifier
from utils.upstream import NytBooksClient, OpenLibraryClient

EXTENSION_KEY = "libbuddy"


def init_app(app) -> None:
    timeout = app.config["UPSTREAM_TIMEOUT_SECONDS"]
    app.extensions[EXTENSION_KEY] = {
        "session_controller": None,
        "cache": ResponseCache(),
        "open_library": OpenLibraryClient(app.config["OPEN_LIBRARY_BASE_URL"], timeout=timeout),
        "nyt": NytBooksClient(app.config["NYT_BASE_URL"], app.config.get("NYT_API_KEY"), timeout=timeout),
    }


def _state() -> dict:
    return current_app.extensions[EXTENSION_KEY]


def build_session_controller(config) -> SessionController:
    token_config = TokenConfig.from_mapping(config)
    return SessionController(
        users=SqlUserRepository(storage),
        refresh_tokens=SqlRefreshTokenRepository(storage),
        hasher=PasswordHasher(),
        issuer=TokenIssuer(token_config),
        verifier=TokenVerifier(token_config),
    )


def session_controller() -> SessionController:
    state = _state()
    if state["session_controller"] is None:
        state["session_controller"] = build_session_controller(current_app.config)
    return state["session_controller"]


def response_cache() -> ResponseCache:
    return _state()["cache"]


def open_library() -> OpenLibraryClient:
    return _state()["open_library"]


def nyt() -> NytBooksClient:
    return _state()["nyt"]
