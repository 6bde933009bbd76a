"""
Folder lifecycle: create, read, update, delete, bookmark and default swap.

Each user owns exactly one default folder. It receives the videos of any
folder the user deletes and can itself never be deleted. Changes to a
folder's name or sharingLevel are pushed into its video mirrors through
the mirror module.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database

import mirror
from database import FOLDERS, USERS, VIDEOS, create_document, create_documents
from errors import InvariantError, NotFoundError
from schemas import Folder
from validation import is_valid_id, parse_id, validate_fields

logger = logging.getLogger(__name__)

SORTS = {
    "asc": [("name", 1)],
    "des": [("name", -1)],
    "desShared": [("sharedCount", -1)],
    "latest": [("createdAt", -1)],
}
DEFAULT_SORT = "desShared"


def find_user(db: Database, user_id: Any) -> dict:
    _id = parse_id(user_id, "user")
    user = db[USERS].find_one({"_id": _id})
    if not user:
        raise NotFoundError("user does not exist.")
    return user


def find_default_folder(db: Database, user_id: ObjectId) -> Optional[dict]:
    return db[FOLDERS].find_one({"user": user_id, "isDefault": True})


def get_folder(db: Database, folder_id: Any) -> dict:
    _id = parse_id(folder_id, "folder")
    folder = db[FOLDERS].find_one({"_id": _id})
    if not folder:
        raise NotFoundError("folder does not exist.")
    return folder


def insert_folder_with_videos(db: Database, folder: Folder, videos: List) -> Tuple[dict, List[dict]]:
    """
    Write a new folder and its video documents as one unit.

    There is no transaction; if the videos cannot be written the folder
    insert is undone before the error propagates.
    """
    folder_doc = create_document(db, FOLDERS, folder)
    try:
        video_docs = create_documents(db, VIDEOS, videos)
    except Exception:
        logger.error(f"video insert failed, removing folder={folder.id}")
        db[FOLDERS].delete_one({"_id": folder.id})
        raise
    return folder_doc, video_docs


def create_folder(db: Database, payload: Dict[str, Any]) -> dict:
    user = find_user(db, payload.get("userId"))

    name = payload.get("name")
    playlist_name = payload.get("playlistName")
    if not (name or playlist_name):
        raise InvariantError("name or youtubePlaylistId is required.")

    fields = validate_fields(payload)
    fields.setdefault("name", playlist_name)

    folder = Folder(
        **fields,
        user=user["_id"],
        youtubeId=payload.get("youtubePlaylistId") if playlist_name else None,
        isDefault=find_default_folder(db, user["_id"]) is None,
    )
    videos = mirror.snapshots_for_create(payload.get("videos") or [], user["_id"], folder)
    folder.videos = [mirror.embedded_video(v) for v in videos]

    folder_doc, _ = insert_folder_with_videos(db, folder, videos)
    logger.info(f"folder created id={folder.id} user={user['_id']} videos={len(videos)} default={folder.isDefault}")
    return folder_doc


def build_search_filter(keyword: Optional[str] = None, strict: Optional[str] = None) -> dict:
    if keyword and is_valid_id(keyword):
        return {"_id": ObjectId(keyword), "sharingLevel": {"$gte": 2}}
    if keyword and strict == "true":
        # exact phrase, whitespace included
        return {"$text": {"$search": f'"{keyword}"'}, "sharingLevel": 3}
    if keyword:
        return {"$text": {"$search": keyword}, "sharingLevel": 3}
    return {"sharingLevel": 3}


def build_sort(sort: Optional[str] = None) -> list:
    if sort is None:
        sort = DEFAULT_SORT
    if sort not in SORTS:
        raise InvariantError("invalid sort.")
    return SORTS[sort]


def list_folders(db: Database, keyword: Optional[str] = None, sort: Optional[str] = None,
                 strict: Optional[str] = None) -> List[dict]:
    order = build_sort(sort)
    return list(db[FOLDERS].find(build_search_filter(keyword, strict)).sort(order))


def update_folder(db: Database, folder_id: Any, payload: Dict[str, Any]) -> dict:
    _id = parse_id(folder_id, "folder")
    changes = validate_fields(payload, require_any=True)

    folder = db[FOLDERS].find_one_and_update(
        {"_id": _id},
        {"$set": {**changes, "updatedAt": datetime.now(timezone.utc)}},
        return_document=ReturnDocument.AFTER,
    )
    if not folder:
        raise NotFoundError("folder does not exist.")
    mirror.propagate_update(db, _id, changes)
    return folder


def delete_folder(db: Database, folder_id: Any) -> dict:
    folder = get_folder(db, folder_id)
    if folder.get("isDefault"):
        raise InvariantError("default folder cannot be deleted.")

    default_folder = None
    if folder.get("videos"):
        default_folder = find_default_folder(db, folder["user"])
        if not default_folder:
            logger.error(f"user={folder['user']} has no default folder")
            raise InvariantError("default folder does not exist.")

    result = db[FOLDERS].delete_one({"_id": folder["_id"], "isDefault": False})
    if result.deleted_count == 0:
        raise InvariantError("folder does not exist, or default folder cannot be deleted.")

    if default_folder:
        mirror.propagate_delete(db, folder, default_folder)
    logger.info(f"folder deleted id={folder['_id']} videos moved={len(folder.get('videos') or [])}")
    return folder


def set_bookmark(db: Database, folder_id: Any, bookmarked: bool) -> dict:
    _id = parse_id(folder_id, "folder")
    folder = db[FOLDERS].find_one_and_update(
        {"_id": _id, "isBookmarked": not bookmarked},
        {"$set": {"isBookmarked": bookmarked}},
        return_document=ReturnDocument.AFTER,
    )
    if not folder:
        state = "bookmarked" if bookmarked else "unbookmarked"
        raise InvariantError(f"folder does not exist, or already {state} folder.")
    return folder


def set_default(db: Database, folder_id: Any, payload: Dict[str, Any]) -> Tuple[dict, dict]:
    """
    Make folder_id the user's default folder.

    The current default is cleared first, then the target is set, so the
    unique default index is never violated. If the target no longer matches
    by then, the previous default is restored.
    """
    user_id = parse_id(payload.get("userId"), "user")
    _id = parse_id(folder_id, "folder")

    new_default = db[FOLDERS].find_one({"_id": _id, "user": user_id})
    old_default = find_default_folder(db, user_id)
    if not old_default:
        raise NotFoundError("user does not exist, or default folder does not exist.")
    if not new_default:
        raise NotFoundError("folder does not exist, or user does not have this folder.")
    if new_default.get("isDefault"):
        raise InvariantError("already default folder.")

    old_default = db[FOLDERS].find_one_and_update(
        {"_id": old_default["_id"], "isDefault": True},
        {"$set": {"isDefault": False}},
        return_document=ReturnDocument.AFTER,
    )
    if not old_default:
        raise InvariantError("default folder changed while swapping.")

    new_default = db[FOLDERS].find_one_and_update(
        {"_id": _id, "user": user_id, "isDefault": False},
        {"$set": {"isDefault": True}},
        return_document=ReturnDocument.AFTER,
    )
    if not new_default:
        db[FOLDERS].update_one({"_id": old_default["_id"]}, {"$set": {"isDefault": True}})
        raise InvariantError("folder does not exist, or user does not have this folder.")

    logger.info(f"default folder of user={user_id} moved {old_default['_id']} -> {_id}")
    return new_default, old_default


def reconcile_folder(db: Database, folder_id: Any) -> Tuple[dict, int]:
    folder = get_folder(db, folder_id)
    return folder, mirror.reconcile(db, folder)
