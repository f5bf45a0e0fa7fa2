from __future__ import annotations
from functools import wraps
import logging
from flask import request, g, abort
from models import storage
from models.user import User
from api.extensions import session_controller

logger = logging.getLogger(__name__)


def jwt_required():
    """
    Require `Authorization: Bearer <access token>`.
    Missing or ill-formed header -> 401; invalid, expired or orphaned token -> 403.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            if not token:
                abort(401, description="Missing or invalid Authorization header")

            result = session_controller().verifier.verify_access(token)
            if not result.ok:
                logger.debug("access token rejected: %s", result.reason.value)
                abort(403, description="Invalid or expired access token")

            user = storage.get(User, result.claim.id)
            if not user:
                abort(403, description="User not found")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator
