from __future__ import annotations

from flask import Blueprint, request
from sqlalchemy.exc import IntegrityError

from models import storage
from models.subscription import Subscription
from models.user import User
from models.schemas.interaction import ChannelTargetSchema
from utils.decorators import jwt_required
from utils.errors import ValidationError
from utils.read_model import ReadModel
from utils.result import unwrap

from .guards import get_or_404
from .read_models import CHANNEL_FIELDS, composer, pagination, user_join
from .responses import envelope

bp = Blueprint("subscriptions", __name__, url_prefix="/subscriptions")

channel_target_schema = ChannelTargetSchema()

SUBSCRIBER_READ_MODEL = ReadModel(
    base=Subscription,
    projection=("subscriber", "created_at"),
    joins=(user_join("subscriber_id", "subscriber", CHANNEL_FIELDS),),
)

CHANNEL_READ_MODEL = ReadModel(
    base=Subscription,
    projection=("channel", "created_at"),
    joins=(user_join("channel_id", "channel", CHANNEL_FIELDS),),
)


@bp.post("/toggle")
@jwt_required()
def toggle_subscription(current_user):
    """
    Subscribe to a channel, or unsubscribe if already subscribed
    ---
    tags:
      - Subscriptions
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            channelId: { type: string }
    responses:
      200:
        description: "{subscribed: bool}"
      400:
        description: Subscribing to yourself
      404:
        description: Channel not found
    """
    data = channel_target_schema.load(request.get_json(silent=True) or {})
    channel_id = data["channel_id"]
    if channel_id == current_user.id:
        raise ValidationError("You cannot subscribe to your own channel")
    get_or_404(User, channel_id, "Channel")

    session = storage.get_session()
    existing = (
        session.query(Subscription)
        .filter(Subscription.subscriber_id == current_user.id, Subscription.channel_id == channel_id)
        .first()
    )
    if existing is not None:
        storage.delete(existing)
        storage.save()
        return envelope(200, "Unsubscription successful", {"subscribed": False})

    storage.new(Subscription(subscriber_id=current_user.id, channel_id=channel_id))
    try:
        storage.save()
    except IntegrityError:
        # a concurrent request subscribed first
        pass
    return envelope(200, "Subscription successful", {"subscribed": True})


@bp.get("/subscribers")
@jwt_required()
def channel_subscribers(current_user):
    """
    Subscribers of a channel, most recent first
    ---
    tags:
      - Subscriptions
    security:
      - Bearer: []
    parameters:
      - { in: query, name: channelId, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200:
        description: "{subscribers, total, page, limit}"
    """
    channel_id = request.args.get("channelId")
    if not channel_id:
        raise ValidationError("Channel Id is missing")

    page = unwrap(
        composer().paginate(
            SUBSCRIBER_READ_MODEL, pagination(), match={"channel_id": channel_id}, caller_id=current_user.id
        )
    )
    return envelope(
        200,
        "Subscribers listing fetch successfully",
        {"subscribers": page.items, "total": page.total, "page": page.page, "limit": page.limit},
    )


@bp.get("/channels")
@jwt_required()
def subscribed_channels(current_user):
    """
    Channels a user is subscribed to, most recent first
    ---
    tags:
      - Subscriptions
    security:
      - Bearer: []
    parameters:
      - { in: query, name: subscriberId, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200:
        description: "{channels, total, page, limit}"
    """
    subscriber_id = request.args.get("subscriberId")
    if not subscriber_id:
        raise ValidationError("Subscriber Id is missing")

    page = unwrap(
        composer().paginate(
            CHANNEL_READ_MODEL, pagination(), match={"subscriber_id": subscriber_id}, caller_id=current_user.id
        )
    )
    return envelope(
        200,
        "Subscribed channels fetch successfully",
        {"channels": page.items, "total": page.total, "page": page.page, "limit": page.limit},
    )
