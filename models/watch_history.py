"""
Watch history: one row per (user, video). Watching again moves the entry to
the top by bumping watched_at.
"""
from sqlalchemy import Column, DateTime, ForeignKey, String, Table, select

from models.base_model import Base, utcnow

watch_history = Table(
    "watch_history",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("video_id", String(36), ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True),
    Column("watched_at", DateTime(timezone=True), default=utcnow, nullable=False, index=True),
)


def record_watch(session, user_id: str, video_id: str) -> None:
    """Insert or refresh the (user, video) entry; the caller commits."""
    seen = session.execute(
        select(watch_history.c.video_id).where(
            watch_history.c.user_id == user_id,
            watch_history.c.video_id == video_id,
        )
    ).first()
    if seen is None:
        session.execute(watch_history.insert().values(user_id=user_id, video_id=video_id, watched_at=utcnow()))
    else:
        session.execute(
            watch_history.update()
            .where(watch_history.c.user_id == user_id, watch_history.c.video_id == video_id)
            .values(watched_at=utcnow())
        )
