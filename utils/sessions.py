"""
Session authority: login, refresh (with rotation) and logout.

Per account there are two states, decided by users.refresh_token:
  NoSession  -> stored value empty
  Active     -> stored value present
Issuing a refresh token always overwrites the stored one, so an account has
at most one live refresh token. refresh() rotates: the presented token is
replaced with a compare-and-set and can never be used again.
"""
from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from utils.errors import (
    AuthenticationError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from utils.result import Err, Ok, Result
from utils.security import REFRESH, CredentialCodec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionTokens:
    account_id: str
    access_token: str
    refresh_token: str


class SessionAuthority:
    def __init__(self, identities, codec: CredentialCodec):
        self.identities = identities
        self.codec = codec

    def login(self, password: str | None, email: str | None = None, username: str | None = None) -> Result[SessionTokens]:
        if not (email or username):
            return Err(ValidationError("Email or username is required"))
        if not password:
            return Err(ValidationError("Password is required"))

        account = self.identities.find_by_email_or_handle(email=email, username=username)
        if account is None:
            return Err(NotFoundError("User not found"))
        if not self.identities.verify_password(account, password):
            logger.info("login rejected for account %s: bad password", account.id)
            return Err(AuthenticationError("Invalid credentials"))

        result = self._issue_and_store(account.id)
        if result.ok:
            logger.info("account %s logged in", account.id)
        return result

    def refresh(self, presented: str | None) -> Result[SessionTokens]:
        if not presented:
            return Err(AuthenticationError("Unauthorized request"))

        verified = self.codec.verify(presented, REFRESH)
        if not verified.ok:
            return verified
        account_id = verified.value

        account = self.identities.find_by_id(account_id)
        if account is None:
            return Err(AuthenticationError("Unauthorized request"))
        stored = account.refresh_token or ""
        if not stored or not hmac.compare_digest(stored, presented):
            logger.warning("refresh rejected for account %s: token superseded or revoked", account_id)
            return Err(AuthenticationError("Refresh token is expired or used"))

        return self._issue_and_store(account_id, expected=presented)

    def logout(self, account_id: str) -> Result[None]:
        try:
            self.identities.update_refresh_field(account_id, None)
        except SQLAlchemyError:
            logger.exception("could not clear refresh token for account %s", account_id)
            return Err(InternalError("Something went wrong while logging out"))
        logger.info("account %s logged out", account_id)
        return Ok(None)

    def _issue_and_store(self, account_id: str, **cas) -> Result[SessionTokens]:
        """
        Issue a pair and persist the refresh half. Nothing is returned unless
        the write landed. `expected=` turns the write into a compare-and-set.
        """
        access = self.codec.issue_access(account_id)
        if not access.ok:
            return access
        refresh = self.codec.issue_refresh(account_id)
        if not refresh.ok:
            return refresh

        try:
            written = self.identities.update_refresh_field(account_id, refresh.value, **cas)
        except SQLAlchemyError:
            logger.exception("could not persist refresh token for account %s", account_id)
            return Err(InternalError("Something went wrong while generating access and refresh token"))
        if not written:
            # another refresh with the same token won the race
            return Err(AuthenticationError("Refresh token is expired or used"))

        return Ok(SessionTokens(account_id=account_id, access_token=access.value, refresh_token=refresh.value))
