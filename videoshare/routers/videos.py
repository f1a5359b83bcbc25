"""
Video metadata: publish after a direct-to-CDN upload (session required) and public listing.
"""
from fastapi import APIRouter, Depends, status
from videoshare.auth import get_current_user
from videoshare.database import Datastore, get_datastore
from videoshare.models.user import User
from videoshare.schemas.video import VideoCreate, VideoResponse
from videoshare.services.videos import create_video, list_videos

router = APIRouter(prefix="/api", tags=["videos"])


def _video_out(video) -> VideoResponse:
    return VideoResponse(
        id=video.id,
        title=video.title,
        description=video.description or "",
        video_url=video.video_url,
        thumbnail_url=video.thumbnail_url,
        created_at=video.created_at,
    )


@router.post("/video", response_model=VideoResponse, status_code=status.HTTP_201_CREATED)
def publish_video(
    body: VideoCreate,
    _user: User = Depends(get_current_user),
    datastore: Datastore = Depends(get_datastore),
):
    """
    Persist title/description for a video the client already uploaded to the CDN.
    thumbnailUrl falls back to videoUrl.
    """
    video = create_video(
        datastore,
        title=body.title,
        description=body.description,
        video_url=body.video_url,
        thumbnail_url=body.thumbnail_url,
    )
    return _video_out(video)


@router.get("/videos", response_model=list[VideoResponse])
def get_videos(datastore: Datastore = Depends(get_datastore)):
    """All videos, newest first. Empty list if the database is unavailable."""
    return [_video_out(v) for v in list_videos(datastore)]
