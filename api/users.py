from __future__ import annotations

from flask import Blueprint, request

from models import identities, storage
from models.subscription import Subscription
from models.user import User
from models.video import Video
from models.watch_history import watch_history
from models.schemas.user import PasswordChangeSchema, UserCreateSchema, UserUpdateSchema
from utils.decorators import jwt_required
from utils.errors import AuthenticationError, ConflictError, ValidationError
from utils.read_model import Contains, Count, JoinSpec, ReadModel, Through
from utils.result import unwrap
from utils.security import hash_password

from .read_models import composer, user_join, visible_videos
from .responses import envelope

bp = Blueprint("users", __name__, url_prefix="/users")

user_create_schema = UserCreateSchema()
user_update_schema = UserUpdateSchema()
password_change_schema = PasswordChangeSchema()

CHANNEL_PROFILE_READ_MODEL = ReadModel(
    base=User,
    projection=(
        "id",
        "fullname",
        "username",
        "email",
        "avatar",
        "cover",
        "subscribers_count",
        "subscribed_to_count",
        "is_subscribed",
        "created_at",
    ),
    joins=(
        JoinSpec(Subscription, "id", "channel_id", "subscribers", fields=("subscriber_id",), many=True),
        JoinSpec(Subscription, "id", "subscriber_id", "subscribed_to", fields=("channel_id",), many=True),
    ),
    derived=(
        Count("subscribers_count", "subscribers"),
        Count("subscribed_to_count", "subscribed_to"),
        Contains("is_subscribed", "subscribers", "subscriber_id"),
    ),
)

WATCH_HISTORY_READ_MODEL = ReadModel(
    base=User,
    projection=("watch_history",),
    joins=(
        JoinSpec(
            source=Video,
            local_key="id",
            foreign_key="id",
            target="watch_history",
            fields=("id", "title", "description", "thumbnail", "video_file", "duration", "views", "created_at", "owner"),
            many=True,
            through=Through(watch_history, "user_id", "video_id", order_by="watched_at", descending=True),
            joins=(user_join("owner_id", "owner"),),
            where=visible_videos,
        ),
    ),
)


@bp.post("")
def register():
    """
    Register a new user
    ---
    tags:
      - Users
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            fullname: { type: string }
            email: { type: string }
            username: { type: string }
            password: { type: string }
            avatar: { type: string }
            cover: { type: string }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Email or username already taken
    """
    data = user_create_schema.load(request.get_json(silent=True) or {})

    if identities.find_by_email_or_handle(email=data["email"], username=data["username"]):
        raise ConflictError("User with this email or username already exists")

    user = User(
        fullname=data["fullname"],
        email=data["email"],
        username=data["username"],
        avatar=data.get("avatar"),
        cover=data.get("cover"),
        password_hash=hash_password(data["password"]),
    )
    storage.new(user)
    storage.save()
    return envelope(201, "User created successfully", user.to_dict())


@bp.get("/me")
@jwt_required()
def me(current_user):
    """
    Get current user info
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return envelope(200, "User fetched successfully", current_user.to_dict())


@bp.patch("/me")
@jwt_required()
def update_me(current_user):
    """
    Update profile details
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            fullname: { type: string }
            email: { type: string }
            avatar: { type: string }
            cover: { type: string }
    responses:
      200:
        description: Updated
      409:
        description: Email already taken
    """
    data = user_update_schema.load(request.get_json(silent=True) or {})
    if not data:
        raise ValidationError("Nothing to update")

    user = identities.find_by_id(current_user.id)
    if "email" in data and data["email"] != user.email:
        if identities.find_by_email_or_handle(email=data["email"]):
            raise ConflictError("Email already registered")

    for field, value in data.items():
        setattr(user, field, value)
    storage.new(user)
    storage.save()
    return envelope(200, "User updated successfully", user.to_dict())


@bp.patch("/me/password")
@jwt_required()
def change_password(current_user):
    """
    Change password
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            oldPassword: { type: string }
            newPassword: { type: string }
    responses:
      200:
        description: Password updated
      401:
        description: Old password does not match
    """
    data = password_change_schema.load(request.get_json(silent=True) or {})
    if data["old_password"] == data["new_password"]:
        raise ValidationError("New password cannot be the same as old password")

    user = identities.find_by_id(current_user.id)
    if not identities.verify_password(user, data["old_password"]):
        raise AuthenticationError("Invalid credentials")

    user.password_hash = hash_password(data["new_password"])
    storage.new(user)
    storage.save()
    return envelope(200, "Password updated successfully")


@bp.get("/channel/<username>")
@jwt_required()
def channel_profile(current_user, username: str):
    """
    Public channel profile with subscriber counts
    ---
    tags:
      - Users
    security:
      - Bearer: []
    parameters:
      - { in: path, name: username, type: string, required: true }
    responses:
      200:
        description: Channel profile
      404:
        description: Channel not found
    """
    channel = unwrap(
        composer().find_one(
            CHANNEL_PROFILE_READ_MODEL,
            match={"username": username.strip().lower()},
            caller_id=current_user.id,
            not_found="Channel not found",
        )
    )
    return envelope(200, "Channel fetched successfully", channel)


@bp.get("/me/history")
@jwt_required()
def watch_history_list(current_user):
    """
    Videos the caller has watched, most recent first
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: List of videos, each with its owner
      401:
        description: Unauthorized
    """
    user = unwrap(
        composer().find_one(
            WATCH_HISTORY_READ_MODEL,
            match={"id": current_user.id},
            caller_id=current_user.id,
            not_found="User not found",
        )
    )
    return envelope(200, "Watch history fetched successfully", user["watch_history"])
