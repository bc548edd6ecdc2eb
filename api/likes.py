"""
Like toggles. A like is keyed on (liker, target): the first call creates it,
the next call removes it. The unique constraints on the likes table make a
concurrent double-like collapse into a single row.
"""
from __future__ import annotations

from flask import Blueprint, request
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from models import storage
from models.comment import Comment
from models.like import Like
from models.tweet import Tweet
from models.video import Video
from models.schemas.interaction import CommentTargetSchema, TweetTargetSchema, VideoTargetSchema
from utils.decorators import jwt_required
from utils.read_model import JoinSpec, ReadModel
from utils.result import unwrap

from .guards import get_or_404, get_visible_video
from .read_models import composer, pagination, user_join, visible_videos
from .responses import envelope

bp = Blueprint("likes", __name__, url_prefix="/like")

video_target_schema = VideoTargetSchema()
comment_target_schema = CommentTargetSchema()
tweet_target_schema = TweetTargetSchema()

LIKED_VIDEO_READ_MODEL = ReadModel(
    base=Like,
    projection=("id", "created_at", "video"),
    joins=(
        JoinSpec(
            source=Video,
            local_key="video_id",
            foreign_key="id",
            target="video",
            fields=("id", "title", "description", "thumbnail", "duration", "views", "created_at", "owner"),
            joins=(user_join("owner_id", "owner"),),
            where=visible_videos,
        ),
    ),
)


def _toggle(current_user, field: str, target_id: str) -> bool:
    """Flip the caller's like on one target; returns whether it is now liked."""
    session = storage.get_session()
    existing = (
        session.query(Like)
        .filter(Like.liked_by_id == current_user.id, getattr(Like, field) == target_id)
        .first()
    )
    if existing is not None:
        storage.delete(existing)
        storage.save()
        return False

    storage.new(Like(liked_by_id=current_user.id, **{field: target_id}))
    try:
        storage.save()
    except IntegrityError:
        # a concurrent request inserted the same like first
        return True
    return True


def _respond(liked: bool, label: str):
    message = f"{label} liked successfully" if liked else f"{label} unliked successfully"
    return envelope(200, message, {"liked": liked})


@bp.post("/video")
@jwt_required()
def toggle_video_like(current_user):
    """
    Like or unlike a video
    ---
    tags:
      - Likes
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            videoId: { type: string }
    responses:
      200:
        description: "{liked: bool}"
      404:
        description: Video not found
    """
    data = video_target_schema.load(request.get_json(silent=True) or {})
    get_visible_video(data["video_id"], current_user)
    return _respond(_toggle(current_user, "video_id", data["video_id"]), "Video")


@bp.post("/comment")
@jwt_required()
def toggle_comment_like(current_user):
    """
    Like or unlike a comment
    ---
    tags:
      - Likes
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            commentId: { type: string }
    responses:
      200:
        description: "{liked: bool}"
    """
    data = comment_target_schema.load(request.get_json(silent=True) or {})
    comment = get_or_404(Comment, data["comment_id"], "Comment")
    get_visible_video(comment.video_id, current_user)
    return _respond(_toggle(current_user, "comment_id", data["comment_id"]), "Comment")


@bp.post("/tweet")
@jwt_required()
def toggle_tweet_like(current_user):
    """
    Like or unlike a tweet
    ---
    tags:
      - Likes
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            tweetId: { type: string }
    responses:
      200:
        description: "{liked: bool}"
    """
    data = tweet_target_schema.load(request.get_json(silent=True) or {})
    get_or_404(Tweet, data["tweet_id"], "Tweet")
    return _respond(_toggle(current_user, "tweet_id", data["tweet_id"]), "Tweet")


@bp.get("/videos")
@jwt_required()
def liked_videos(current_user):
    """
    Videos the caller liked, most recently liked first
    ---
    tags:
      - Likes
    security:
      - Bearer: []
    parameters:
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200:
        description: "{likedVideos, total, page, limit}"
    """
    page = unwrap(
        composer().paginate(
            LIKED_VIDEO_READ_MODEL,
            pagination(),
            match={"liked_by_id": current_user.id},
            present=("video_id",),
            caller_id=current_user.id,
            where=(Like.video_id.in_(select(Video.id).where(visible_videos(current_user.id))),),
        )
    )
    return envelope(
        200,
        "User liked videos fetch successfully",
        {"likedVideos": page.items, "total": page.total, "page": page.page, "limit": page.limit},
    )
