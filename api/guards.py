from models import storage
from models.video import Video
from utils.errors import ForbiddenError, NotFoundError


def get_or_404(cls, obj_id: str, label: str):
    obj = storage.get(cls, obj_id)
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


def get_owned(cls, obj_id: str, current_user, label: str):
    """Fetch a row the caller owns (owner_id); 404 if missing, 403 if not theirs."""
    obj = get_or_404(cls, obj_id, label)
    if obj.owner_id != current_user.id:
        raise ForbiddenError(f"You are not the owner of this {label.lower()}")
    return obj


def get_visible_video(video_id: str, current_user) -> Video:
    """An unpublished video only exists for its owner."""
    video = storage.get(Video, video_id)
    if video is None or (not video.is_published and video.owner_id != current_user.id):
        raise NotFoundError("Video not found")
    return video
