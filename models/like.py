"""
Like model: one row per (liker, target). Exactly one of video_id,
comment_id, tweet_id is set; the unique constraints make a like a set
membership, so toggling can never produce duplicates.
"""
from sqlalchemy import CheckConstraint, Column, ForeignKey, String, UniqueConstraint

from models.base_model import BaseModel, Base

TARGETS = ("video_id", "comment_id", "tweet_id")


class Like(BaseModel, Base):
    __tablename__ = "likes"

    liked_by_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    video_id = Column(String(36), ForeignKey("videos.id", ondelete="CASCADE"), nullable=True, index=True)
    comment_id = Column(String(36), ForeignKey("comments.id", ondelete="CASCADE"), nullable=True, index=True)
    tweet_id = Column(String(36), ForeignKey("tweets.id", ondelete="CASCADE"), nullable=True, index=True)

    __table_args__ = (
        CheckConstraint(
            "(CASE WHEN video_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN comment_id IS NULL THEN 0 ELSE 1 END)"
            " + (CASE WHEN tweet_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_likes_single_target",
        ),
        UniqueConstraint("liked_by_id", "video_id", name="uq_likes_video"),
        UniqueConstraint("liked_by_id", "comment_id", name="uq_likes_comment"),
        UniqueConstraint("liked_by_id", "tweet_id", name="uq_likes_tweet"),
    )
