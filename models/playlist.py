from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Text

from models.base_model import BaseModel, Base, utcnow

# Association table; the composite primary key gives set semantics
# (adding the same video twice is a no-op).
playlist_videos = Table(
    "playlist_videos",
    Base.metadata,
    Column("playlist_id", String(36), ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True),
    Column("video_id", String(36), ForeignKey("videos.id", ondelete="CASCADE"), primary_key=True),
    Column("added_at", DateTime(timezone=True), default=utcnow, nullable=False),
)


class Playlist(BaseModel, Base):
    __tablename__ = "playlists"

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
