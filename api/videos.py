from __future__ import annotations

import logging

from flask import Blueprint, request
from sqlalchemy.exc import IntegrityError

from models import storage
from models.video import Video
from models.watch_history import record_watch
from models.schemas.video import PublishSchema, VideoCreateSchema, VideoUpdateSchema
from utils.decorators import jwt_required
from utils.errors import ValidationError
from utils.read_model import Contains, Count, ReadModel
from utils.result import unwrap

from .guards import get_owned, get_visible_video
from .read_models import composer, likes_join, pagination, user_join
from .responses import envelope

logger = logging.getLogger(__name__)

bp = Blueprint("videos", __name__)

video_create_schema = VideoCreateSchema()
video_update_schema = VideoUpdateSchema()
publish_schema = PublishSchema()

VIDEO_FIELDS = (
    "id",
    "title",
    "description",
    "video_file",
    "thumbnail",
    "duration",
    "views",
    "is_published",
    "created_at",
    "updated_at",
)

VIDEO_READ_MODEL = ReadModel(
    base=Video,
    projection=VIDEO_FIELDS + ("owner", "likes_count", "is_liked"),
    joins=(user_join("owner_id", "owner"), likes_join("video_id")),
    derived=(Count("likes_count", "likes"), Contains("is_liked", "likes", "liked_by_id")),
    sortable=("created_at", "updated_at", "title", "views", "duration"),
)


@bp.get("/videos")
@jwt_required()
def list_videos(current_user):
    """
    List a channel's videos with owner profile and like counts
    ---
    tags:
      - Videos
    security:
      - Bearer: []
    parameters:
      - { in: query, name: userId, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
      - { in: query, name: sortBy, type: string, description: "created_at, updated_at, title, views, duration" }
      - { in: query, name: sortType, type: string, description: "asc | desc" }
    responses:
      200:
        description: "{videos, total, page, limit}"
    """
    user_id = request.args.get("userId")
    if not user_id:
        raise ValidationError("User id is missing")

    match = {"owner_id": user_id}
    if user_id != current_user.id:
        # unpublished videos are only listed for their owner
        match["is_published"] = True

    page = unwrap(composer().paginate(VIDEO_READ_MODEL, pagination(), match=match, caller_id=current_user.id))
    return envelope(
        200,
        "Video listing",
        {"videos": page.items, "total": page.total, "page": page.page, "limit": page.limit},
    )


@bp.post("/videos")
@jwt_required()
def publish_video(current_user):
    """
    Publish a video (media already uploaded; URLs only)
    ---
    tags:
      - Videos
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            title: { type: string }
            description: { type: string }
            videoFile: { type: string }
            thumbnail: { type: string }
            duration: { type: number }
            isPublished: { type: boolean }
    responses:
      201:
        description: Created
      400:
        description: Validation error
    """
    data = video_create_schema.load(request.get_json(silent=True) or {})
    video = Video(owner_id=current_user.id, **data)
    storage.new(video)
    storage.save()
    return envelope(201, "Video published successfully", video.to_dict())


@bp.get("/videos/<video_id>")
@jwt_required()
def get_video(current_user, video_id: str):
    """
    Get a single video; counts one view and records it in the caller's watch history
    ---
    tags:
      - Videos
    security:
      - Bearer: []
    parameters:
      - { in: path, name: video_id, type: string, required: true }
    responses:
      200:
        description: Video found
      404:
        description: Not found
    """
    video = get_visible_video(video_id, current_user)

    session = storage.get_session()
    session.query(Video).filter(Video.id == video_id).update(
        {Video.views: Video.views + 1, Video.updated_at: Video.updated_at}, synchronize_session=False
    )
    storage.save()
    session.refresh(video)

    record_watch(session, current_user.id, video_id)
    try:
        storage.save()
    except IntegrityError:
        # a concurrent request recorded the same first watch
        logger.info("watch of video %s by %s already recorded", video_id, current_user.id)

    data = unwrap(
        composer().find_one(
            VIDEO_READ_MODEL,
            match={"id": video_id},
            caller_id=current_user.id,
            not_found="Video not found",
        )
    )
    return envelope(200, "Video fetched successfully", data)


@bp.patch("/videos/<video_id>")
@jwt_required()
def update_video(current_user, video_id: str):
    """
    Update title, description or thumbnail (owner only)
    ---
    tags:
      - Videos
    security:
      - Bearer: []
    parameters:
      - { in: path, name: video_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            title: { type: string }
            description: { type: string }
            thumbnail: { type: string }
    responses:
      200:
        description: Updated
      403:
        description: Not the owner
      404:
        description: Not found
    """
    video = get_owned(Video, video_id, current_user, "Video")
    data = video_update_schema.load(request.get_json(silent=True) or {})
    for field, value in data.items():
        setattr(video, field, value)
    storage.new(video)
    storage.save()
    return envelope(200, "Video updated successfully", video.to_dict())


@bp.delete("/videos/<video_id>")
@jwt_required()
def delete_video(current_user, video_id: str):
    """
    Delete a video (owner only); its comments, likes and playlist entries go with it
    ---
    tags:
      - Videos
    security:
      - Bearer: []
    parameters:
      - { in: path, name: video_id, type: string, required: true }
    responses:
      200:
        description: Deleted
      403:
        description: Not the owner
      404:
        description: Not found
    """
    video = get_owned(Video, video_id, current_user, "Video")
    storage.delete(video)
    storage.save()
    return envelope(200, "Video deleted successfully")


@bp.patch("/videos/<video_id>/publish")
@jwt_required()
def toggle_publish(current_user, video_id: str):
    """
    Set isPublished, or flip it when the body omits it (owner only)
    ---
    tags:
      - Videos
    security:
      - Bearer: []
    parameters:
      - { in: path, name: video_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            isPublished: { type: boolean }
    responses:
      200:
        description: Status changed
    """
    video = get_owned(Video, video_id, current_user, "Video")
    data = publish_schema.load(request.get_json(silent=True) or {})
    status = data.get("is_published")
    video.is_published = (not video.is_published) if status is None else status
    storage.new(video)
    storage.save()
    return envelope(200, "Video status changed successfully", {"id": video.id, "is_published": video.is_published})
