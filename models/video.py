from sqlalchemy import Boolean, CheckConstraint, Column, Float, ForeignKey, Integer, String, Text

from models.base_model import BaseModel, Base


class Video(BaseModel, Base):
    __tablename__ = "videos"

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    video_file = Column(String(512), nullable=False)
    thumbnail = Column(String(512), nullable=False)
    duration = Column(Float, nullable=True)  # seconds, as reported by the media store
    views = Column(Integer, nullable=False, default=0)
    is_published = Column(Boolean, nullable=False, default=True)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("views >= 0", name="ck_videos_views_nonnegative"),
    )
