from __future__ import annotations

from flask import Blueprint, request
from sqlalchemy import select

from models import storage
from models.playlist import Playlist, playlist_videos
from models.video import Video
from models.schemas.playlist import PlaylistCreateSchema, PlaylistUpdateSchema
from utils.decorators import jwt_required
from utils.errors import ValidationError
from utils.read_model import Count, JoinSpec, ReadModel, Through
from utils.result import unwrap

from .guards import get_owned, get_visible_video
from .read_models import composer, pagination, user_join, visible_videos
from .responses import envelope

bp = Blueprint("playlists", __name__, url_prefix="/playlists")

playlist_create_schema = PlaylistCreateSchema()
playlist_update_schema = PlaylistUpdateSchema()

PLAYLIST_ENTRIES = Through(table=playlist_videos, local_key="playlist_id", foreign_key="video_id", order_by="added_at")


def _videos_join(fields, joins=()) -> JoinSpec:
    return JoinSpec(
        source=Video,
        local_key="id",
        foreign_key="id",
        target="videos",
        fields=fields,
        many=True,
        through=PLAYLIST_ENTRIES,
        joins=joins,
        where=visible_videos,
    )


PLAYLIST_SUMMARY_READ_MODEL = ReadModel(
    base=Playlist,
    projection=("id", "name", "description", "video_count", "created_at", "updated_at"),
    joins=(_videos_join(("id",)),),
    derived=(Count("video_count", "videos"),),
    sortable=("created_at", "updated_at", "name"),
)

PLAYLIST_DETAIL_READ_MODEL = ReadModel(
    base=Playlist,
    projection=("id", "name", "description", "owner", "videos", "video_count", "created_at", "updated_at"),
    joins=(
        user_join("owner_id", "owner"),
        _videos_join(
            ("id", "title", "description", "thumbnail", "video_file", "duration", "views", "owner"),
            joins=(user_join("owner_id", "owner"),),
        ),
    ),
    derived=(Count("video_count", "videos"),),
)


def _detail(playlist_id: str, caller_id: str) -> dict:
    return unwrap(
        composer().find_one(
            PLAYLIST_DETAIL_READ_MODEL,
            match={"id": playlist_id},
            caller_id=caller_id,
            not_found="Playlist not found",
        )
    )


@bp.post("")
@jwt_required()
def create_playlist(current_user):
    """
    Create a playlist
    ---
    tags:
      - Playlists
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            name: { type: string }
            description: { type: string }
    responses:
      201:
        description: Created
    """
    data = playlist_create_schema.load(request.get_json(silent=True) or {})
    playlist = Playlist(owner_id=current_user.id, **data)
    storage.new(playlist)
    storage.save()
    return envelope(201, "Playlist created successfully", playlist.to_dict())


@bp.get("")
@jwt_required()
def list_playlists(current_user):
    """
    A user's playlists with their video counts
    ---
    tags:
      - Playlists
    security:
      - Bearer: []
    parameters:
      - { in: query, name: userId, type: string, required: true }
      - { in: query, name: page, type: integer, default: 1 }
      - { in: query, name: limit, type: integer, default: 10 }
    responses:
      200:
        description: "{playlists, total, page, limit}"
    """
    user_id = request.args.get("userId")
    if not user_id:
        raise ValidationError("User id is missing")

    page = unwrap(
        composer().paginate(
            PLAYLIST_SUMMARY_READ_MODEL, pagination(), match={"owner_id": user_id}, caller_id=current_user.id
        )
    )
    return envelope(
        200,
        "Playlists fetched successfully",
        {"playlists": page.items, "total": page.total, "page": page.page, "limit": page.limit},
    )


@bp.get("/<playlist_id>")
@jwt_required()
def get_playlist(current_user, playlist_id: str):
    """
    A playlist with its owner and videos
    ---
    tags:
      - Playlists
    security:
      - Bearer: []
    parameters:
      - { in: path, name: playlist_id, type: string, required: true }
    responses:
      200:
        description: Playlist
      404:
        description: Not found
    """
    return envelope(200, "Playlist fetched successfully", _detail(playlist_id, current_user.id))


@bp.patch("/<playlist_id>")
@jwt_required()
def update_playlist(current_user, playlist_id: str):
    """
    Rename or re-describe a playlist (owner only)
    ---
    tags:
      - Playlists
    security:
      - Bearer: []
    parameters:
      - { in: path, name: playlist_id, type: string, required: true }
      - in: body
        name: body
        schema:
          type: object
          properties:
            name: { type: string }
            description: { type: string }
    responses:
      200:
        description: Updated
    """
    playlist = get_owned(Playlist, playlist_id, current_user, "Playlist")
    data = playlist_update_schema.load(request.get_json(silent=True) or {})
    for field, value in data.items():
        setattr(playlist, field, value)
    storage.new(playlist)
    storage.save()
    return envelope(200, "Playlist updated successfully", playlist.to_dict())


@bp.delete("/<playlist_id>")
@jwt_required()
def delete_playlist(current_user, playlist_id: str):
    """
    Delete a playlist (owner only)
    ---
    tags:
      - Playlists
    security:
      - Bearer: []
    parameters:
      - { in: path, name: playlist_id, type: string, required: true }
    responses:
      200:
        description: Deleted
    """
    playlist = get_owned(Playlist, playlist_id, current_user, "Playlist")
    storage.delete(playlist)
    storage.save()
    return envelope(200, "Playlist successfully removed")


@bp.put("/<playlist_id>/videos/<video_id>")
@jwt_required()
def add_video(current_user, playlist_id: str, video_id: str):
    """
    Add a video to a playlist; adding it twice is a no-op (owner only)
    ---
    tags:
      - Playlists
    security:
      - Bearer: []
    parameters:
      - { in: path, name: playlist_id, type: string, required: true }
      - { in: path, name: video_id, type: string, required: true }
    responses:
      200:
        description: Playlist with its videos
    """
    get_owned(Playlist, playlist_id, current_user, "Playlist")
    get_visible_video(video_id, current_user)

    session = storage.get_session()
    already = session.execute(
        select(playlist_videos.c.video_id).where(
            playlist_videos.c.playlist_id == playlist_id,
            playlist_videos.c.video_id == video_id,
        )
    ).first()
    if already is None:
        session.execute(playlist_videos.insert().values(playlist_id=playlist_id, video_id=video_id))
        storage.save()
    return envelope(200, "Video successfully added", _detail(playlist_id, current_user.id))


@bp.delete("/<playlist_id>/videos/<video_id>")
@jwt_required()
def remove_video(current_user, playlist_id: str, video_id: str):
    """
    Remove a video from a playlist (owner only)
    ---
    tags:
      - Playlists
    security:
      - Bearer: []
    parameters:
      - { in: path, name: playlist_id, type: string, required: true }
      - { in: path, name: video_id, type: string, required: true }
    responses:
      200:
        description: Playlist with its videos
    """
    get_owned(Playlist, playlist_id, current_user, "Playlist")
    session = storage.get_session()
    session.execute(
        playlist_videos.delete().where(
            playlist_videos.c.playlist_id == playlist_id,
            playlist_videos.c.video_id == video_id,
        )
    )
    storage.save()
    return envelope(200, "Video successfully removed", _detail(playlist_id, current_user.id))
