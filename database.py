"""
Database helpers

Thin layer over pymongo shared by the folder and video handlers.
Collections are named after the lowercase schema class:
- Folder -> "folder"
- Video -> "video"
- User -> "user"
"""

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Union

from bson import ObjectId
from pydantic import BaseModel
from pymongo import ASCENDING, TEXT, MongoClient
from pymongo.database import Database

from config import get_settings

FOLDERS = "folder"
VIDEOS = "video"
USERS = "user"

logger = logging.getLogger(__name__)

_client = None


def _get_client() -> MongoClient:
    global _client
    if not _client:
        url = get_settings().database_url
        logger.info(f"connecting to {url}")
        _client = MongoClient(url)
    return _client


def get_db() -> Database:
    """FastAPI dependency returning the configured database"""
    return _get_client()[get_settings().database_name]


def _to_dict(data: Union[BaseModel, dict]) -> dict:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, exclude_none=True)
    return dict(data)


def stamp(data: Union[BaseModel, dict]) -> dict:
    data_dict = _to_dict(data)
    now = datetime.now(timezone.utc)
    data_dict.setdefault("createdAt", now)
    data_dict["updatedAt"] = now
    return data_dict


def create_document(db: Database, collection_name: str, data: Union[BaseModel, dict]) -> dict:
    """Insert one document and return it as stored"""
    data_dict = stamp(data)
    db[collection_name].insert_one(data_dict)
    return data_dict


def create_documents(db: Database, collection_name: str, items: Iterable[Union[BaseModel, dict]]) -> List[dict]:
    docs = [stamp(item) for item in items]
    if docs:
        db[collection_name].insert_many(docs)
    return docs


def serialize(value: Any) -> Any:
    """Make a stored document JSON friendly (ObjectId -> str, datetime -> ISO)"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value


def ensure_indexes(db: Database) -> None:
    # Only one default folder per user may exist.
    db[FOLDERS].create_index(
        [("user", ASCENDING), ("isDefault", ASCENDING)],
        unique=True,
        partialFilterExpression={"isDefault": True},
        name="one_default_per_user",
    )
    db[FOLDERS].create_index([("name", TEXT)], name="folder_name_text")
    db[VIDEOS].create_index([("folder._id", ASCENDING)], name="video_folder_mirror")
    logger.info("Indexes ready")
