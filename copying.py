"""Deep copy of a folder and its videos into another user's collection."""

import logging
from typing import Any, Dict, List, Tuple

from pymongo import ReturnDocument
from pymongo.database import Database

import mirror
from database import FOLDERS, VIDEOS
from errors import InvariantError, NotFoundError
from folders import find_default_folder, find_user, insert_folder_with_videos
from schemas import Folder
from validation import parse_id

logger = logging.getLogger(__name__)


def load_source_videos(db: Database, folder: dict) -> List[dict]:
    """Video documents referenced by folder.videos, in the folder's order"""
    ids = [v["_id"] for v in folder.get("videos") or []]
    found = {v["_id"]: v for v in db[VIDEOS].find({"_id": {"$in": ids}})}
    return [found[i] for i in ids if i in found]


def copy_folder(db: Database, folder_id: Any, payload: Dict[str, Any]) -> Tuple[dict, List[dict], dict]:
    """
    Copy folder_id, with fresh copies of its videos, for payload["userId"].

    Private folders can only be copied by their owner. Copies made by
    anyone else count as shares: sharedCount goes up by one on the source
    folder and on every video mirrored to it.

    The copy becomes the copier's default folder when they have none yet.

    Returns (new folder, new videos, source folder).
    """
    parse_id(payload.get("userId"), "user")
    origin_id = parse_id(folder_id, "folder")

    origin = db[FOLDERS].find_one({"_id": origin_id})
    if not origin:
        raise NotFoundError("folder does not exist.")
    user = find_user(db, payload.get("userId"))

    is_owner = origin["user"] == user["_id"]
    if origin.get("sharingLevel") == 1 and not is_owner:
        raise InvariantError("folder disabled for copying.")

    new_folder = Folder(
        name=origin["name"],
        youtubeId=origin.get("youtubeId"),
        tags=origin.get("tags") or [],
        user=user["_id"],
        isDefault=find_default_folder(db, user["_id"]) is None,
    )
    new_videos = [mirror.snapshot_for_copy(v, user["_id"], new_folder) for v in load_source_videos(db, origin)]
    new_folder.videos = [mirror.embedded_video(v) for v in new_videos]

    folder_doc, video_docs = insert_folder_with_videos(db, new_folder, new_videos)

    if not is_owner:
        origin = db[FOLDERS].find_one_and_update(
            {"_id": origin_id, "user": {"$ne": user["_id"]}},
            {"$inc": {"sharedCount": 1}},
            return_document=ReturnDocument.AFTER,
        ) or origin
        db[VIDEOS].update_many(
            {"folder._id": origin_id, "user": {"$ne": user["_id"]}},
            {"$inc": {"sharedCount": 1}},
        )

    logger.info(f"folder copied origin={origin_id} new={new_folder.id} user={user['_id']} videos={len(video_docs)}")
    return folder_doc, video_docs, origin
