"""
Incremental search from a text box.

Keystrokes are debounced, and every request gets a generation number. A
response is shown only if no newer request was issued meanwhile, so a slow
stale response can never overwrite fresher results.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional

import requests

logger = logging.getLogger(__name__)


class RequestGenerations:
    def __init__(self):
        self._current = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            self._current += 1
            return self._current

    def supersede(self) -> None:
        """Invalidate whatever is in flight."""
        self.next()

    def is_current(self, generation: int) -> bool:
        with self._lock:
            return generation == self._current


def http_searcher(base_url: str, session: Optional[requests.Session] = None,
                  timeout: float = 10.0) -> Callable[[str], List[Any]]:
    http = session or requests.Session()
    url = f"{base_url.rstrip('/')}/search"

    def search(query: str) -> List[Any]:
        response = http.get(url, params={"q": query}, timeout=timeout)
        response.raise_for_status()
        return response.json()

    return search


class SearchClient:
    def __init__(self, search: Callable[[str], List[Any]], debounce: float = 0.3,
                 timer_factory=threading.Timer):
        self.search = search
        self.debounce = debounce
        self.timer_factory = timer_factory
        self.results: List[Any] = []
        self.generations = RequestGenerations()
        self._timer = None
        self._lock = threading.Lock()

    def type(self, query: str) -> None:
        """Called on every keystroke."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if not query.strip():
                self.generations.supersede()
                self.results = []
                return
            generation = self.generations.next()
            timer = self.timer_factory(self.debounce, self._run, args=(query, generation))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def search_now(self, query: str) -> bool:
        """Search immediately (form submit); True if the results were published."""
        return self._run(query, self.generations.next())

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self.generations.supersede()

    def _run(self, query: str, generation: int) -> bool:
        if not self.generations.is_current(generation):
            return False
        try:
            results = self.search(query)
        except requests.RequestException as exc:
            logger.error("search for %r failed: %s", query, exc)
            return False
        return self._publish(generation, results)

    def _publish(self, generation: int, results: List[Any]) -> bool:
        with self._lock:
            if not self.generations.is_current(generation):
                logger.debug("dropping superseded search results (generation %d)", generation)
                return False
            self.results = results
            return True
