"""
Pass-through routes over Open Library and the NYT Books API.
Every response is memoized in the response cache; failed upstream calls
are answered with 502 and never cached.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify, abort, current_app

from .extensions import response_cache, open_library, nyt

bp = Blueprint("books", __name__)


def _cached(key: str, fetch, ttl: int | None = None):
    ttl = ttl if ttl is not None else current_app.config["CACHE_TTL_SECONDS"]
    return jsonify(response_cache().get_or_fetch(key, ttl, fetch)), 200


@bp.get("/search")
def search():
    """
    Search Open Library
    ---
    tags:
      - Books
    parameters:
      - in: query
        name: q
        type: string
        required: true
    responses:
      200: { description: List of Open Library search docs }
      400: { description: Missing q }
      502: { description: Upstream failure }
    """
    q = (request.args.get("q") or "").strip()
    if not q:
        abort(400, description="Query parameter q is required")
    return _cached(f"search-{q.lower()}", lambda: open_library().search(q))


@bp.get("/works/<work_id>")
@bp.get("/book/<work_id>")
def work(work_id: str):
    """
    Work details
    ---
    tags:
      - Books
    parameters:
      - in: path
        name: work_id
        type: string
        required: true
    responses:
      200: { description: Open Library work }
    """
    return _cached(f"works-{work_id}", lambda: open_library().work(work_id))


@bp.get("/authors/<author_id>")
def author(author_id: str):
    """
    Author details
    ---
    tags:
      - Books
    parameters:
      - in: path
        name: author_id
        type: string
        required: true
    responses:
      200: { description: Open Library author }
    """
    return _cached(f"authors-{author_id}", lambda: open_library().author(author_id))


@bp.get("/authors/<author_id>/works")
def author_works(author_id: str):
    """
    Works by an author
    ---
    tags:
      - Books
    parameters:
      - in: path
        name: author_id
        type: string
        required: true
    responses:
      200: { description: Open Library author works (entries) }
    """
    return _cached(f"author-works-{author_id}", lambda: open_library().author_works(author_id))


@bp.get("/subjects/<subject>")
def subject(subject: str):
    """
    Works in a subject (category page)
    ---
    tags:
      - Books
    parameters:
      - in: path
        name: subject
        type: string
        required: true
    responses:
      200: { description: Open Library subject }
    """
    return _cached(f"subjects-{subject.lower()}", lambda: open_library().subject(subject))


@bp.get("/ratings/<work_id>")
def ratings(work_id: str):
    """
    Rating summary for a work
    ---
    tags:
      - Books
    parameters:
      - in: path
        name: work_id
        type: string
        required: true
    responses:
      200: { description: "{summary, counts}" }
    """
    return _cached(f"ratings-{work_id}", lambda: open_library().ratings(work_id))


@bp.get("/bestsellers")
def bestsellers():
    """
    Current NYT hardcover fiction list
    ---
    tags:
      - Books
    responses:
      200: { description: "List of {title, author, book_image, amazon_product_url}" }
    """
    return _cached(
        "bestsellers",
        lambda: nyt().bestsellers(),
        ttl=current_app.config["BESTSELLERS_TTL_SECONDS"],
    )
