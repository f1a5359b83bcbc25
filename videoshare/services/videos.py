"""
Video persistence: create after a client-reported upload, list newest first.
The videoUrl from the CDN result is trusted as-is; nothing here checks that it resolves.
"""
import logging
from datetime import datetime

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError

from videoshare.core.errors import PersistenceError, ValidationError
from videoshare.database import Datastore, is_transient
from videoshare.models.video import Video

logger = logging.getLogger(__name__)


def create_video(
    datastore: Datastore,
    title: str | None,
    description: str | None,
    video_url: str | None,
    thumbnail_url: str | None = None,
    *,
    created_at: datetime | None = None,
) -> Video:
    """Insert one Video. thumbnail_url falls back to video_url when missing or empty."""
    title = (title or "").strip()
    video_url = (video_url or "").strip()
    if not title:
        raise ValidationError("Title is required")
    if not video_url:
        raise ValidationError("Video URL is required")
    thumbnail_url = (thumbnail_url or "").strip() or video_url

    db = datastore.session()
    try:
        video = Video(
            title=title,
            description=(description or "").strip(),
            video_url=video_url,
            thumbnail_url=thumbnail_url,
        )
        if created_at is not None:
            video.created_at = created_at
        db.add(video)
        db.commit()
        db.refresh(video)
        db.expunge(video)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create video %r: %s", title, e)
        raise PersistenceError(f"Failed to create video: {e}", retryable=is_transient(e)) from e
    finally:
        db.close()
    logger.info("Video created: %s", video.id)
    return video


def list_videos(datastore: Datastore) -> list[Video]:
    """All videos, newest first. Fails soft: any datastore error yields []."""
    try:
        db = datastore.session()
    except PersistenceError as e:
        logger.error("Error fetching videos: %s", e.message)
        return []
    try:
        videos = db.query(Video).order_by(desc(Video.created_at)).all()
        for v in videos:
            db.expunge(v)
        return videos
    except SQLAlchemyError as e:
        logger.error("Error fetching videos: %s", e)
        return []
    finally:
        db.close()
