"""
Database Schemas

MongoDB collection schemas for curated folders, defined as Pydantic models.
Model name is converted to lowercase for the collection name:
- Folder -> "folder" collection
- Video -> "video" collection

Dumped with by_alias=True and exclude_none=True before insertion so that
"id" is stored as "_id" and unset optional fields (start, end) never land
in the database as null.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from bson import ObjectId


class Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)


class FolderMirror(Document):
    """Copy of a folder's identity fields embedded in each of its videos"""
    id: ObjectId = Field(..., alias="_id")
    name: str
    sharingLevel: int = Field(..., ge=1, le=3)


class VideoDescriptor(Document):
    """Video content as supplied by the playlist import"""
    youtubeId: str = Field(..., description="Playlist item / video id on the platform")
    title: str = Field(..., description="Video title")
    tags: List[str] = Field(default_factory=list)
    originDuration: Optional[float] = Field(None, ge=0, description="Untrimmed duration in seconds")
    duration: Optional[float] = Field(None, ge=0, description="Duration after trimming")
    start: Optional[float] = Field(None, ge=0, description="Trim start offset")
    end: Optional[float] = Field(None, ge=0, description="Trim end offset")
    thumbnail: Optional[str] = Field(None, description="Thumbnail URL")


class EmbeddedVideo(VideoDescriptor):
    """Video snapshot stored inside folder.videos"""
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    user: ObjectId
    sharedCount: int = Field(0, ge=0)


class Video(EmbeddedVideo):
    """
    Videos collection schema
    Collection name: "video"
    """
    folder: FolderMirror


class Folder(Document):
    """
    Folders collection schema
    Collection name: "folder"
    """
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    name: str = Field(..., min_length=1)
    sharingLevel: int = Field(1, ge=1, le=3, description="1 private, 2 link shared, 3 public")
    tags: List[str] = Field(default_factory=list)
    isDefault: bool = False
    isBookmarked: bool = False
    sharedCount: int = Field(0, ge=0, description="Times copied by other users")
    user: ObjectId
    youtubeId: Optional[str] = Field(None, description="Source playlist id")
    videos: List[EmbeddedVideo] = Field(default_factory=list)
