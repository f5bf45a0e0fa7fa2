import logging

from flask import Blueprint
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from models import storage
from .extensions import response_cache

logger = logging.getLogger(__name__)

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    """
    Liveness plus a database round trip
    ---
    tags:
      - Health
    responses:
      200:
        description: API and database are up
        schema:
          type: object
          properties:
            status: { type: string, example: ok }
            database: { type: string, example: ok }
            cached_responses: { type: integer, example: 12 }
      503:
        description: Database unreachable
    """
    try:
        storage.get_session().execute(text("SELECT 1"))
        db_status = "ok"
    except SQLAlchemyError as exc:
        logger.warning("health check: database unavailable: %s", exc)
        db_status = "unavailable"

    body = {
        "status": "ok" if db_status == "ok" else "degraded",
        "database": db_status,
        "cached_responses": len(response_cache()),
    }
    return body, 200 if db_status == "ok" else 503
