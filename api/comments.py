from __future__ import annotations

from flask import Blueprint, request

from models import storage
from models.comment import Comment
from models.schemas.comment import CommentCreateSchema, CommentUpdateSchema
from utils.decorators import jwt_required
from utils.errors import ValidationError
from utils.read_model import Contains, Count, ReadModel
from utils.result import unwrap

from .guards import get_owned, get_visible_video
from .read_models import composer, likes_join, pagination, user_join
from .responses import envelope

bp = Blueprint("comments", __name__)

comment_create_schema = CommentCreateSchema()
comment_update_schema = CommentUpdateSchema()

COMMENT_READ_MODEL = ReadModel(
    base=Comment,
    projection=("id", "content", "video_id", "created_at", "updated_at", "owner", "likes_count", "is_liked"),
    joins=(user_join("owner_id", "owner"), likes_join("comment_id")),
    derived=(Count("likes_count", "likes"), Contains("is_liked", "likes", "liked_by_id")),
)


@bp.get("/comments")
@jwt_required()
def list_comments(current_user):
    """
    List the comments of a video, most recent first
    ---
    tags:
      - Comments
    security:
      - Bearer: []
    parameters:
      - { in: query, name: videoId, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200:
        description: "{comments, total, page, limit}"
      400:
        description: videoId missing
      404:
        description: Video not found
    """
    video_id = request.args.get("videoId")
    if not video_id:
        raise ValidationError("Video id is missing")
    get_visible_video(video_id, current_user)

    page = unwrap(
        composer().paginate(COMMENT_READ_MODEL, pagination(), match={"video_id": video_id}, caller_id=current_user.id)
    )
    return envelope(
        200,
        "Comments listing fetched successfully",
        {"comments": page.items, "total": page.total, "page": page.page, "limit": page.limit},
    )


@bp.post("/comments")
@jwt_required()
def add_comment(current_user):
    """
    Comment on a video
    ---
    tags:
      - Comments
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
            content: { type: string }
    responses:
      201:
        description: Created
      404:
        description: Video not found
    """
    data = comment_create_schema.load(request.get_json(silent=True) or {})
    get_visible_video(data["video_id"], current_user)
    comment = Comment(content=data["content"], video_id=data["video_id"], owner_id=current_user.id)
    storage.new(comment)
    storage.save()
    return envelope(201, "Comment created successfully", comment.to_dict())


@bp.patch("/comments/<comment_id>")
@jwt_required()
def update_comment(current_user, comment_id: str):
    """
    Edit a comment (owner only)
    ---
    tags:
      - Comments
    security:
      - Bearer: []
    parameters:
      - { in: path, name: comment_id, type: string, required: true }
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
    comment = get_owned(Comment, comment_id, current_user, "Comment")
    data = comment_update_schema.load(request.get_json(silent=True) or {})
    comment.content = data["content"]
    storage.new(comment)
    storage.save()
    return envelope(200, "Comment updated successfully", comment.to_dict())


@bp.delete("/comments/<comment_id>")
@jwt_required()
def delete_comment(current_user, comment_id: str):
    """
    Delete a comment (owner only)
    ---
    tags:
      - Comments
    security:
      - Bearer: []
    parameters:
      - { in: path, name: comment_id, type: string, required: true }
    responses:
      200:
        description: Deleted
    """
    comment = get_owned(Comment, comment_id, current_user, "Comment")
    storage.delete(comment)
    storage.save()
    return envelope(200, "Comment deleted successfully")
