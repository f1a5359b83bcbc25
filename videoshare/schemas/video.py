from datetime import datetime
from pydantic import BaseModel, Field


class VideoCreate(BaseModel):
    """Body for POST /api/video. Missing fields default to empty so the handler reports them."""
    title: str | None = ""
    description: str | None = ""
    video_url: str | None = Field("", alias="videoUrl")
    thumbnail_url: str | None = Field(None, alias="thumbnailUrl")

    class Config:
        populate_by_name = True


class VideoResponse(BaseModel):
    id: str
    title: str
    description: str
    video_url: str = Field(alias="videoUrl")
    thumbnail_url: str = Field(alias="thumbnailUrl")
    created_at: datetime = Field(alias="createdAt")

    class Config:
        populate_by_name = True
        from_attributes = True


class UploadGrantResponse(BaseModel):
    token: str
    expires_at: int = Field(alias="expiresAt")
    signature: str

    class Config:
        populate_by_name = True
