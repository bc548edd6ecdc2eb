from flask import Blueprint
from sqlalchemy import func, select

from models import storage
from models.like import Like
from models.subscription import Subscription
from models.video import Video
from utils.decorators import jwt_required

from .responses import envelope

bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


@bp.get("/stats")
@jwt_required()
def channel_stats(current_user):
    """
    Totals for the caller's channel
    ---
    tags:
      - Dashboard
    security:
      - Bearer: []
    responses:
      200:
        description: "{videos, likes, subscribers, views}"
    """
    session = storage.get_session()
    owner_videos = session.query(Video.id).filter(Video.owner_id == current_user.id)

    videos = owner_videos.count()
    views = session.query(func.coalesce(func.sum(Video.views), 0)).filter(Video.owner_id == current_user.id).scalar()
    # likes received on the caller's videos
    likes = session.query(Like).filter(Like.video_id.in_(select(Video.id).where(Video.owner_id == current_user.id))).count()
    subscribers = session.query(Subscription).filter(Subscription.channel_id == current_user.id).count()

    return envelope(
        200,
        "Channel stats fetched",
        {"videos": videos, "likes": likes, "subscribers": subscribers, "views": int(views or 0)},
    )
