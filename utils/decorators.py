from __future__ import annotations
from functools import wraps
from flask import request

from models import identities
from models.identity_store import AccountProfile
from utils.errors import AuthenticationError
from utils.result import Err, Ok, Result, unwrap
from utils.security import ACCESS, CredentialCodec, get_codec

ACCESS_COOKIE = "accessToken"


def extract_access_token(req) -> str | None:
    """Cookie first, then the Authorization bearer header."""
    token = req.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    auth = req.headers.get("Authorization", "")
    if auth.startswith("Bearer "):
        return auth.split(" ", 1)[1].strip() or None
    return None


def authenticate(token: str | None, codec: CredentialCodec, store=identities) -> Result[AccountProfile]:
    """
    Resolve the caller behind an access token.
    The stored refresh token is not consulted: a valid access token is
    enough until it expires.
    """
    if not token:
        return Err(AuthenticationError("Unauthorized request"))

    verified = codec.verify(token, ACCESS)
    if not verified.ok:
        return Err(AuthenticationError(verified.error.message))

    account = store.find_profile(verified.value)
    if account is None:
        return Err(AuthenticationError("Invalid Access Token"))
    return Ok(account)


def jwt_required():
    """
    Reject the request with 401 unless it carries a valid access token.
    The resolved AccountProfile is handed to the view as `current_user`.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            account = unwrap(authenticate(extract_access_token(request), get_codec()))
            return fn(*args, current_user=account, **kwargs)

        return wrapper

    return decorator
