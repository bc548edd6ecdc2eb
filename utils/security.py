"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT creation/verification via PyJWT (CredentialCodec)
- JTI generation for token identifiers

The codec is pure: it only needs the two signing secrets and the expiries.
Access and refresh tokens are signed with different secrets so a leaked
access secret cannot forge refresh tokens (and vice versa).
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Mapping

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError
from flask import current_app

from utils.errors import ExpiredToken, MalformedToken, SigningFailure
from utils.result import Err, Ok, Result

ACCESS = "access"
REFRESH = "refresh"

ph = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHashError):
        return False


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CredentialCodec:
    """Issues and verifies access/refresh JWTs."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_expires: timedelta,
        refresh_expires: timedelta,
        algorithm: str = "HS256",
        issuer: str = "vidshare-api",
    ):
        self._secrets = {ACCESS: access_secret, REFRESH: refresh_secret}
        self._expires = {ACCESS: access_expires, REFRESH: refresh_expires}
        self.algorithm = algorithm
        self.issuer = issuer

    @classmethod
    def from_config(cls, config: Mapping) -> "CredentialCodec":
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_expires=config["ACCESS_TOKEN_EXPIRES"],
            refresh_expires=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "vidshare-api"),
        )

    def expires_in(self, kind: str) -> timedelta:
        return self._expires[kind]

    def issue_access(self, account_id: str) -> Result[str]:
        return self._issue(account_id, ACCESS)

    def issue_refresh(self, account_id: str) -> Result[str]:
        return self._issue(account_id, REFRESH)

    def _issue(self, account_id: str, kind: str) -> Result[str]:
        now = _now()
        payload = {
            "iss": self.issuer,
            "sub": str(account_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self._expires[kind]).timestamp()),
            "type": kind,
            "jti": generate_jti(),
        }
        try:
            token = jwt.encode(payload, self._secrets[kind], algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError, NotImplementedError) as exc:
            return Err(SigningFailure(details={"kind": kind, "reason": exc.__class__.__name__}))
        return Ok(token)

    def verify(self, token: str, kind: str) -> Result[str]:
        """
        Decode and validate a JWT of the given kind ("access" or "refresh").
        Returns the account id carried in "sub".
        Expired tokens -> ExpiredToken; anything else wrong -> MalformedToken.
        """
        if kind not in self._secrets:
            return Err(MalformedToken(f"Unknown token kind: {kind}"))
        if not token or not isinstance(token, str):
            return Err(MalformedToken())
        try:
            decoded = jwt.decode(
                token,
                self._secrets[kind],
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            return Err(ExpiredToken())
        except jwt.InvalidTokenError as exc:
            return Err(MalformedToken(f"Invalid token: {exc}"))

        if decoded.get("type") != kind:
            return Err(MalformedToken("Wrong token type"))
        subject = decoded.get("sub")
        if not subject:
            return Err(MalformedToken("Token has no subject"))
        return Ok(str(subject))


def get_codec() -> CredentialCodec:
    """Codec bound to the current Flask app (built once in create_app)."""
    codec = current_app.extensions.get("credential_codec")
    if codec is None:
        codec = CredentialCodec.from_config(current_app.config)
        current_app.extensions["credential_codec"] = codec
    return codec
