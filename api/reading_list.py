from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort

from models import storage
from models.reading_list import ReadingListEntry
from models.schemas.reading_list import ReadingListAddSchema, ReadingListEntryOutSchema
from utils.decorators import jwt_required

logger = logging.getLogger(__name__)

bp = Blueprint("reading_list", __name__)

add_schema = ReadingListAddSchema()
entries_out_schema = ReadingListEntryOutSchema(many=True)


def _find_entry(user_id: int, book_id: str):
    session = storage.get_session()
    return (
        session.query(ReadingListEntry)
        .filter(ReadingListEntry.user_id == user_id, ReadingListEntry.book_id == book_id)
        .first()
    )


@bp.post("/add-to-reading-list")
@jwt_required()
def add_to_reading_list():
    """
    Add a work to the caller's reading list
    ---
    tags:
      - Reading list
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [bookId]
          properties:
            bookId: { type: string, example: OL45804W }
    responses:
      201: { description: Added }
      401: { description: Missing Authorization header }
      403: { description: Invalid or expired access token }
      409: { description: Already in the reading list }
    """
    payload = request.get_json(silent=True) or {}
    data = add_schema.load(payload)
    book_id = data["bookId"]
    user = g.current_user

    if _find_entry(user.id, book_id):
        abort(409, description="Book already in reading list")

    # a concurrent duplicate still fails on uq_reading_list_user_book -> 409
    entry = ReadingListEntry(user_id=user.id, book_id=book_id)
    storage.new(entry)
    storage.save()
    logger.info("user id=%s added %s to reading list", user.id, book_id)
    return jsonify({"message": "Book added to reading list", "book_id": book_id}), 201


@bp.get("/reading-list")
@jwt_required()
def get_reading_list():
    """
    The caller's reading list
    ---
    tags:
      - Reading list
    security:
      - Bearer: []
    responses:
      200:
        description: List of {book_id}
    """
    session = storage.get_session()
    rows = (
        session.query(ReadingListEntry)
        .filter(ReadingListEntry.user_id == g.current_user.id)
        .order_by(ReadingListEntry.id.asc())
        .all()
    )
    return jsonify(entries_out_schema.dump(rows)), 200


@bp.delete("/reading-list/<book_id>")
@jwt_required()
def remove_from_reading_list(book_id: str):
    """
    Remove a work from the caller's reading list
    ---
    tags:
      - Reading list
    security:
      - Bearer: []
    parameters:
      - in: path
        name: book_id
        type: string
        required: true
    responses:
      200: { description: Removed }
      404: { description: Not in the reading list }
    """
    entry = _find_entry(g.current_user.id, book_id)
    if not entry:
        abort(404, description="Book not found in reading list")
    storage.delete(entry)
    storage.save()
    return jsonify({"message": "Book removed from reading list"}), 200
