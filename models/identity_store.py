"""
IdentityStore: the account lookups and the single refresh-token write the
session layer relies on. Everything goes through the DBStorage scoped session.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError

from models.base_model import format_value
from models.user import User
from utils.security import verify_password

_ANY = object()


@dataclass(frozen=True)
class AccountProfile:
    """Account projection without password_hash and refresh_token."""

    id: str
    email: str
    username: str
    fullname: str
    avatar: Optional[str]
    cover: Optional[str]
    created_at: Optional[datetime]

    def to_dict(self) -> dict:
        return {f.name: format_value(getattr(self, f.name)) for f in fields(self)}


PROFILE_COLUMNS = tuple(getattr(User, f.name) for f in fields(AccountProfile))


class IdentityStore:
    def __init__(self, storage):
        self._storage = storage

    @property
    def session(self):
        return self._storage.get_session()

    def find_by_id(self, account_id: str) -> Optional[User]:
        return self.session.get(User, account_id)

    def find_profile(self, account_id: str) -> Optional[AccountProfile]:
        row = self.session.query(*PROFILE_COLUMNS).filter(User.id == account_id).first()
        if row is None:
            return None
        return AccountProfile(**row._asdict())

    def find_by_email_or_handle(self, email: str | None = None, username: str | None = None) -> Optional[User]:
        criteria = []
        if email:
            criteria.append(User.email == email.strip().lower())
        if username:
            criteria.append(User.username == username.strip().lower())
        if not criteria:
            return None
        return self.session.query(User).filter(or_(*criteria)).order_by(User.created_at).first()

    def update_refresh_field(self, account_id: str, value: str | None, expected=_ANY) -> bool:
        """
        Single-row atomic UPDATE of users.refresh_token.
        With `expected`, the write only happens if the stored value still
        equals it (compare-and-set). Returns whether a row was written.
        Raises SQLAlchemyError after rolling back.
        """
        query = self.session.query(User).filter(User.id == account_id)
        if expected is not _ANY:
            query = query.filter(User.refresh_token == expected)
        try:
            updated = query.update({User.refresh_token: value}, synchronize_session="fetch")
        except SQLAlchemyError:
            self._storage.rollback()
            raise
        self._storage.save()
        return updated == 1

    @staticmethod
    def verify_password(account: User, password: str) -> bool:
        return verify_password(password, account.password_hash)
