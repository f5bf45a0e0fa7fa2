import logging

from flask import Blueprint, jsonify, abort

from .extensions import response_cache

logger = logging.getLogger(__name__)

bp = Blueprint("cache", __name__, url_prefix="/cache")


@bp.delete("/<path:key>")
def delete_key(key: str):
    """
    Drop one cached upstream response
    ---
    tags:
      - Cache
    parameters:
      - in: path
        name: key
        type: string
        required: true
        description: e.g. works-OL45804W
    responses:
      200: { description: Deleted }
      404: { description: Key not cached }
    """
    if not response_cache().delete(key):
        abort(404, description=f"Cache key '{key}' not found")
    logger.info("cache key %s deleted", key)
    return jsonify({"message": f"Cache key '{key}' deleted"}), 200


@bp.delete("")
def clear():
    """
    Drop every cached upstream response
    ---
    tags:
      - Cache
    responses:
      200: { description: Cleared }
    """
    n = response_cache().clear()
    logger.info("cache cleared (%d entries)", n)
    return jsonify({"message": f"Cache cleared ({n} entries)"}), 200
