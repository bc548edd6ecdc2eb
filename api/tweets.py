from __future__ import annotations

from flask import Blueprint, request

from models import storage
from models.tweet import Tweet
from models.schemas.tweet import TweetSchema
from utils.decorators import jwt_required
from utils.errors import ValidationError
from utils.read_model import Contains, Count, ReadModel
from utils.result import unwrap

from .guards import get_owned
from .read_models import CHANNEL_FIELDS, composer, likes_join, pagination, user_join
from .responses import envelope

bp = Blueprint("tweets", __name__)

tweet_schema = TweetSchema()

TWEET_READ_MODEL = ReadModel(
    base=Tweet,
    projection=("id", "content", "created_at", "updated_at", "owner", "likes_count", "is_liked"),
    joins=(user_join("owner_id", "owner", CHANNEL_FIELDS), likes_join("tweet_id")),
    derived=(Count("likes_count", "likes"), Contains("is_liked", "likes", "liked_by_id")),
)


@bp.get("/tweets")
@jwt_required()
def list_tweets(current_user):
    """
    List a user's tweets, most recent first
    ---
    tags:
      - Tweets
    security:
      - Bearer: []
    parameters:
      - { in: query, name: userId, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200:
        description: "{tweets, total, page, limit}"
    """
    user_id = request.args.get("userId")
    if not user_id:
        raise ValidationError("User id is missing")

    page = unwrap(
        composer().paginate(TWEET_READ_MODEL, pagination(), match={"owner_id": user_id}, caller_id=current_user.id)
    )
    return envelope(
        200,
        "Tweet listing fetch successfully",
        {"tweets": page.items, "total": page.total, "page": page.page, "limit": page.limit},
    )


@bp.post("/tweets")
@jwt_required()
def create_tweet(current_user):
    """
    Create a tweet
    ---
    tags:
      - Tweets
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            content: { type: string }
    responses:
      201:
        description: Created
    """
    data = tweet_schema.load(request.get_json(silent=True) or {})
    tweet = Tweet(content=data["content"], owner_id=current_user.id)
    storage.new(tweet)
    storage.save()
    return envelope(201, "Tweet created successfully", tweet.to_dict())


@bp.patch("/tweets/<tweet_id>")
@jwt_required()
def update_tweet(current_user, tweet_id: str):
    """
    Update a tweet (owner only)
    ---
    tags:
      - Tweets
    security:
      - Bearer: []
    parameters:
      - { in: path, name: tweet_id, type: string, required: true }
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            content: { type: string }
    responses:
      200:
        description: Updated
    """
    tweet = get_owned(Tweet, tweet_id, current_user, "Tweet")
    data = tweet_schema.load(request.get_json(silent=True) or {})
    tweet.content = data["content"]
    storage.new(tweet)
    storage.save()
    return envelope(200, "Tweet updated successfully", tweet.to_dict())


@bp.delete("/tweets/<tweet_id>")
@jwt_required()
def delete_tweet(current_user, tweet_id: str):
    """
    Delete a tweet (owner only)
    ---
    tags:
      - Tweets
    security:
      - Bearer: []
    parameters:
      - { in: path, name: tweet_id, type: string, required: true }
    responses:
      200:
        description: Deleted
    """
    tweet = get_owned(Tweet, tweet_id, current_user, "Tweet")
    storage.delete(tweet)
    storage.save()
    return envelope(200, "Tweet deleted successfully")
