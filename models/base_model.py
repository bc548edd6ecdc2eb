#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the video platform models.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- to_dict() that formats timestamps and never exposes credential columns

created_at is filled on the Python side (microsecond precision) with the
server default as a fallback, so "most recent first" ordering is stable even
when several rows are written within the same second.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime, inspect
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

TIME_FMT = "%Y-%m-%dT%H:%M:%S.%f"

# Never serialized, whatever the caller asks for
SENSITIVE_FIELDS = frozenset({"password_hash", "refresh_token"})

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_value(value):
    if isinstance(value, datetime):
        return value.strftime(TIME_FMT)
    return value


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at,
    and a column-based to_dict().
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        If you pass created_at/updated_at explicitly (e.g., in tests), they will be set.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # Ensure an id exists if user passed none
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def to_dict(self) -> dict:
        """
        Column values keyed by attribute name, timestamps formatted with
        TIME_FMT. Credential columns are always dropped.
        """
        d = {}
        for attr in inspect(self.__class__).column_attrs:
            if attr.key in SENSITIVE_FIELDS:
                continue
            d[attr.key] = format_value(getattr(self, attr.key))
        return d
