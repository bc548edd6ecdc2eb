"""
Join specifications shared by several listings.
"""
from __future__ import annotations

from flask import request
from sqlalchemy import or_

from models import storage
from models.like import Like
from models.user import User
from models.video import Video
from utils.read_model import JoinSpec, Pagination, ReadModelComposer

OWNER_FIELDS = ("id", "username", "fullname", "avatar")
CHANNEL_FIELDS = ("id", "username", "fullname", "avatar", "cover")


def composer() -> ReadModelComposer:
    return ReadModelComposer(storage.get_session())


def pagination() -> Pagination:
    return Pagination.from_args(request.args)


def visible_videos(caller_id):
    """Published videos, plus the caller's own drafts."""
    if caller_id is None:
        return Video.is_published.is_(True)
    return or_(Video.is_published.is_(True), Video.owner_id == caller_id)


def user_join(local_key: str, target: str, fields=OWNER_FIELDS) -> JoinSpec:
    """to-one join of a users row (owner, subscriber, channel ...)."""
    return JoinSpec(source=User, local_key=local_key, foreign_key="id", target=target, fields=fields)


def likes_join(foreign_key: str) -> JoinSpec:
    """to-many join of the likes pointing at the document, liker ids only."""
    return JoinSpec(
        source=Like,
        local_key="id",
        foreign_key=foreign_key,
        target="likes",
        fields=("liked_by_id",),
        many=True,
    )
