"""Video published after a direct-to-CDN upload. Created once, never updated."""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime
from videoshare.database import Base


class Video(Base):
    __tablename__ = "videos"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    video_url = Column(String(1024), nullable=False)  # CDN-hosted media
    thumbnail_url = Column(String(1024), nullable=False)  # video_url when CDN gives none
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
