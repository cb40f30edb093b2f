from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AssetCategory(str, Enum):
    videos = "videos"
    images = "images"


class MovieCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(min_length=1)
    year: int
    video_url: str = Field(alias="videoUrl", min_length=1)
    thumbnail_url: str = Field(alias="thumbnailUrl", min_length=1)


class MovieRead(MovieCreate):
    id: str


class UploadResponse(BaseModel):
    message: str
    url: str


class MessageResponse(BaseModel):
    message: str
