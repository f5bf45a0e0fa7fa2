"""
Session endpoints:
- POST   /register  {name, password}   -> 201 {id, name}
- POST   /login     {name, password}   -> 200 {accesstoken, refreshtoken}
- POST   /token     {token}            -> 200 {accesstoken}
- DELETE /logout    {token}            -> 204

Access tokens are short lived; refresh tokens stay valid until logout
removes them from the refresh token store. Refresh tokens travel in the
request body only.
"""
from __future__ import annotations

from flask import Blueprint, request, jsonify

from models.schemas.user import CredentialsSchema, UserOutSchema, TokenPairOutSchema
from .extensions import session_controller

bp = Blueprint("auth", __name__)

credentials_schema = CredentialsSchema()
user_out_schema = UserOutSchema()
token_pair_out_schema = TokenPairOutSchema()


def _refresh_token_from_body():
    payload = request.get_json(silent=True) or {}
    token = payload.get("token") if isinstance(payload, dict) else None
    return token if isinstance(token, str) else None


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [name, password]
          properties:
            name: { type: string }
            password: { type: string }
    responses:
      201:
        description: Created
      409:
        description: Name already taken
      422:
        description: Validation error
    """
    payload = request.get_json(silent=True) or {}
    data = credentials_schema.load(payload)
    user = session_controller().register(data["name"], data["password"])
    return jsonify(user_out_schema.dump(user)), 201


@bp.post("/login")
def login():
    """
    Login: returns an access token and a refresh token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [name, password]
           properties:
             name: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      400:
        description: Unknown user, or no refresh token secret configured
      401:
        description: Wrong password
    """
    payload = request.get_json(silent=True) or {}
    data = credentials_schema.load(payload)
    pair = session_controller().login(data["name"], data["password"])
    return jsonify(token_pair_out_schema.dump(pair)), 200


@bp.post("/token")
def token():
    """
    Exchange a refresh token for a new access token (the refresh token is not rotated)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             token: { type: string }
    responses:
      200:
        description: New access token
      401:
        description: No token supplied
      403:
        description: Unknown, revoked or invalid refresh token
    """
    access = session_controller().renew(_refresh_token_from_body())
    return jsonify({"accesstoken": access}), 200


@bp.delete("/logout")
def logout():
    """
    Logout: revokes the refresh token (idempotent)
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             token: { type: string }
    responses:
      204:
        description: Revoked (or was never known)
    """
    session_controller().logout(_refresh_token_from_body())
    return ("", 204)
