from collections import Counter

import pytest
from argon2 import PasswordHasher as Argon2Hasher

from api import create_app
from api.extensions import EXTENSION_KEY
from models import storage
from models.repositories import InMemoryRefreshTokenRepository, InMemoryUserRepository
from services.session import SessionController
from utils.security import PasswordHasher, TokenConfig, TokenIssuer, TokenVerifier
from utils.upstream import UpstreamError

ACCESS_SECRET = "unit-access-secret-0123456789abcdef01234"
REFRESH_SECRET = "unit-refresh-secret-0123456789abcdef0123"


def fast_hasher():
    # cheap argon2 parameters, the tests hash a lot
    return PasswordHasher(Argon2Hasher(time_cost=1, memory_cost=8, parallelism=1))


class FakeOpenLibrary:
    """Stands in for OpenLibraryClient; counts calls per method."""

    def __init__(self):
        self.calls = Counter()
        self.fail = False

    def _answer(self, name, value):
        self.calls[name] += 1
        if self.fail:
            raise UpstreamError("Upstream request failed with status 503", 503)
        return value

    def search(self, query, limit=10):
        return self._answer("search", [{"key": "/works/OL1W", "title": f"{query} (result)", "cover_i": 1}])

    def work(self, work_id):
        return self._answer("work", {"key": f"/works/{work_id}", "title": "The Hobbit", "covers": [42]})

    def author(self, author_id):
        return self._answer("author", {"key": f"/authors/{author_id}", "name": "J. R. R. Tolkien"})

    def author_works(self, author_id, limit=50):
        return self._answer("author_works", {"entries": [{"title": "The Hobbit"}], "size": 1})

    def subject(self, subject, limit=20):
        return self._answer("subject", {"name": subject, "works": [{"title": "Dune"}]})

    def ratings(self, work_id):
        return self._answer("ratings", {"summary": {"average": 4.2, "count": 10}, "counts": {"5": 6, "4": 4}})


class FakeNyt:
    def __init__(self):
        self.calls = 0

    def bestsellers(self, list_name="hardcover-fiction"):
        self.calls += 1
        return [{"title": "A BOOK", "author": "Someone", "book_image": "x.jpg", "amazon_product_url": "u"}]


@pytest.fixture
def app():
    app = create_app("test")
    state = app.extensions[EXTENSION_KEY]
    state["open_library"] = FakeOpenLibrary()
    state["nyt"] = FakeNyt()
    yield app
    storage.close()
    storage.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def open_library(app):
    return app.extensions[EXTENSION_KEY]["open_library"]


@pytest.fixture
def nyt(app):
    return app.extensions[EXTENSION_KEY]["nyt"]


@pytest.fixture
def token_config():
    return TokenConfig(access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET)


@pytest.fixture
def controller(token_config):
    return SessionController(
        users=InMemoryUserRepository(),
        refresh_tokens=InMemoryRefreshTokenRepository(),
        hasher=fast_hasher(),
        issuer=TokenIssuer(token_config),
        verifier=TokenVerifier(token_config),
    )


def register_and_login(client, name="alice", password="pw123"):
    assert client.post("/register", json={"name": name, "password": password}).status_code == 201
    res = client.post("/login", json={"name": name, "password": password})
    assert res.status_code == 200
    return res.get_json()


@pytest.fixture
def tokens(client):
    return register_and_login(client)


@pytest.fixture
def auth_headers(tokens):
    return {"Authorization": f"Bearer {tokens['accesstoken']}"}


class FakeTimer:
    """threading.Timer look-alike that only fires when told to."""

    created = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.started = False
        self.cancelled = False
        self.daemon = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        return self.function(*self.args)


@pytest.fixture(autouse=True)
def reset_fake_timers():
    FakeTimer.created = []
    yield
    FakeTimer.created = []
