"""
HTTP clients for the two upstream data sources: Open Library and the
New York Times Books API. Responses are returned as decoded JSON; any
transport error or non-2xx status raises UpstreamError.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

USER_AGENT = "LibBuddy/1.0 (+https://openlibrary.org/developers/api)"


class UpstreamError(Exception):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def create_session() -> requests.Session:
    session = requests.Session()
    session.headers.update({
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    })
    return session


class _JsonClient:
    def __init__(self, base_url: str, timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or create_session()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            logger.warning("upstream %s answered %s", url, status)
            raise UpstreamError(f"Upstream request failed with status {status}", status) from exc
        except (requests.RequestException, ValueError) as exc:
            logger.warning("upstream %s failed: %s", url, exc)
            raise UpstreamError("Upstream request failed") from exc


class OpenLibraryClient(_JsonClient):
    def search(self, query: str, limit: int = 10) -> List[Dict[str, Any]]:
        data = self._get("search.json", params={"q": query, "limit": limit})
        return data.get("docs", [])

    def work(self, work_id: str) -> Dict[str, Any]:
        return self._get(f"works/{work_id}.json")

    def author(self, author_id: str) -> Dict[str, Any]:
        return self._get(f"authors/{author_id}.json")

    def author_works(self, author_id: str, limit: int = 50) -> Dict[str, Any]:
        return self._get(f"authors/{author_id}/works.json", params={"limit": limit})

    def subject(self, subject: str, limit: int = 20) -> Dict[str, Any]:
        return self._get(f"subjects/{subject.lower()}.json", params={"limit": limit})

    def ratings(self, work_id: str) -> Dict[str, Any]:
        return self._get(f"works/{work_id}/ratings.json")


class NytBooksClient(_JsonClient):
    def __init__(self, base_url: str, api_key: Optional[str], timeout: float = 10.0,
                 session: Optional[requests.Session] = None):
        super().__init__(base_url, timeout=timeout, session=session)
        self.api_key = api_key

    def bestsellers(self, list_name: str = "hardcover-fiction") -> List[Dict[str, Any]]:
        if not self.api_key:
            raise UpstreamError("NYT_API_KEY is not configured")
        data = self._get(f"lists/current/{list_name}.json", params={"api-key": self.api_key})
        books = (data.get("results") or {}).get("books", [])
        return [
            {
                "title": b.get("title"),
                "author": b.get("author"),
                "book_image": b.get("book_image"),
                "amazon_product_url": b.get("amazon_product_url"),
            }
            for b in books
        ]
