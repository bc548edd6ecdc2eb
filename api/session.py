"""
Session blueprint:
- POST /session/login
- POST /session/refresh
- POST /session/logout

Tokens are returned in the body and also set as HttpOnly cookies
(accessToken / refreshToken). The refresh endpoint reads the refresh token
from its cookie first, then from the JSON body.
"""
from __future__ import annotations

from flask import Blueprint, current_app, request

from models import identities
from models.schemas.user import UserLoginSchema
from utils.decorators import ACCESS_COOKIE, jwt_required
from utils.result import unwrap
from utils.security import ACCESS, REFRESH, get_codec
from utils.sessions import SessionAuthority, SessionTokens

from .responses import envelope

REFRESH_COOKIE = "refreshToken"

bp = Blueprint("session", __name__, url_prefix="/session")

user_login_schema = UserLoginSchema()


def _authority() -> SessionAuthority:
    return SessionAuthority(identities, get_codec())


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("COOKIE_SECURE", True),
        "samesite": current_app.config.get("COOKIE_SAMESITE", "Strict"),
        "path": "/",
    }


def _with_session_cookies(response, tokens: SessionTokens):
    codec = get_codec()
    options = _cookie_options()
    response.set_cookie(
        ACCESS_COOKIE,
        tokens.access_token,
        max_age=int(codec.expires_in(ACCESS).total_seconds()),
        **options,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        tokens.refresh_token,
        max_age=int(codec.expires_in(REFRESH).total_seconds()),
        **options,
    )
    return response


@bp.post("/login")
def login():
    """
    Login with email or username; returns and sets access/refresh tokens
    ---
    tags:
      - Session
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            username: { type: string }
            password: { type: string }
    responses:
      200:
        description: Logged in; cookies set
      400:
        description: Missing credential or password
      401:
        description: Invalid credentials
      404:
        description: User not found
    """
    payload = user_login_schema.load(request.get_json(silent=True) or {})
    tokens = unwrap(
        _authority().login(
            payload.get("password"),
            email=payload.get("email"),
            username=payload.get("username"),
        )
    )
    user = identities.find_profile(tokens.account_id)

    response, status = envelope(
        200,
        "User logged in successfully",
        {
            "user": user.to_dict() if user else None,
            "accessToken": tokens.access_token,
            "refreshToken": tokens.refresh_token,
        },
    )
    return _with_session_cookies(response, tokens), status


@bp.post("/refresh")
def refresh():
    """
    Exchange a refresh token for a new access/refresh pair (rotation)
    ---
    tags:
      - Session
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            refreshToken: { type: string }
    responses:
      200:
        description: New tokens; cookies rotated
      401:
        description: Missing, expired, invalid or already used refresh token
    """
    presented = request.cookies.get(REFRESH_COOKIE)
    if not presented:
        presented = (request.get_json(silent=True) or {}).get("refreshToken")

    tokens = unwrap(_authority().refresh(presented))
    response, status = envelope(
        200,
        "Access token refreshed successfully",
        {"accessToken": tokens.access_token, "refreshToken": tokens.refresh_token},
    )
    return _with_session_cookies(response, tokens), status


@bp.post("/logout")
@jwt_required()
def logout(current_user):
    """
    Logout: revokes the stored refresh token and clears both cookies
    ---
    tags:
      - Session
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    unwrap(_authority().logout(current_user.id))

    response, status = envelope(200, "User logged out successfully")
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
    return response, status
