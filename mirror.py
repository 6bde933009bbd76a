"""
Video mirror projection.

Every video document carries a copy of its folder's identity fields under
"folder" ({_id, name, sharingLevel}) so video reads never join on folders.
The functions here are the only places that build or rewrite that copy; the
folder handlers call them explicitly after any change to the mirrored fields.
All writes are plain $set/$push updates, so re-running one converges on the
same state.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping

from bson import ObjectId
from pydantic import ValidationError
from pymongo.database import Database

from database import FOLDERS, VIDEOS
from errors import FieldValidationError
from schemas import EmbeddedVideo, Folder, FolderMirror, Video, VideoDescriptor

logger = logging.getLogger(__name__)

MIRRORED_FIELDS = ("name", "sharingLevel")
CONTENT_FIELDS = ("youtubeId", "title", "tags", "originDuration", "duration", "thumbnail")
TRIM_FIELDS = ("start", "end")


def folder_mirror(folder: Any) -> FolderMirror:
    if isinstance(folder, Folder):
        return FolderMirror(_id=folder.id, name=folder.name, sharingLevel=folder.sharingLevel)
    return FolderMirror(_id=folder["_id"], name=folder["name"], sharingLevel=folder["sharingLevel"])


def embedded_video(video: Video) -> EmbeddedVideo:
    """Snapshot of a video as kept in its folder's videos list"""
    return EmbeddedVideo.model_validate(video.model_dump(exclude={"folder"}))


def snapshots_for_create(descriptors: Iterable[Mapping[str, Any]], owner_id: ObjectId, folder: Folder) -> List[Video]:
    """
    Build the videos of a folder that is being created.

    The folder has not been persisted yet; its pre-assigned id is what the
    mirrors point at. Descriptors repeating a youtubeId are dropped, the
    first one wins.
    """
    if not isinstance(descriptors, (list, tuple)):
        raise FieldValidationError("videos must be an array.")
    mirror = folder_mirror(folder)
    videos, seen = [], set()
    for raw in descriptors:
        try:
            descriptor = VideoDescriptor.model_validate(raw)
        except ValidationError as e:
            raise FieldValidationError(f"invalid video: {e.errors()[0]['msg']}.")
        if descriptor.youtubeId in seen:
            continue
        seen.add(descriptor.youtubeId)
        videos.append(Video(**descriptor.model_dump(exclude_none=True), user=owner_id, folder=mirror))
    return videos


def snapshot_for_copy(source: Mapping[str, Any], owner_id: ObjectId, folder: Folder) -> Video:
    """New video for a copied folder: same content, new id, owner and mirror"""
    fields = {f: source[f] for f in CONTENT_FIELDS if f in source}
    # Trim offsets exist only when the source set them.
    fields.update({f: source[f] for f in TRIM_FIELDS if source.get(f) is not None})
    return Video(**fields, user=owner_id, folder=folder_mirror(folder))


def propagate_update(db: Database, folder_id: ObjectId, changes: Mapping[str, Any]) -> int:
    """Push changed name/sharingLevel into every mirror of folder_id"""
    update = {f"folder.{k}": v for k, v in changes.items() if k in MIRRORED_FIELDS}
    if not update:
        return 0
    result = db[VIDEOS].update_many({"folder._id": folder_id}, {"$set": update})
    logger.debug(f"mirror update folder={folder_id} fields={sorted(update)} videos={result.modified_count}")
    return result.modified_count


def propagate_delete(db: Database, folder: Mapping[str, Any], default_folder: Mapping[str, Any]) -> int:
    """Hand the videos of a deleted folder over to the owner's default folder"""
    mirror = folder_mirror(default_folder).model_dump(by_alias=True)
    result = db[VIDEOS].update_many({"folder._id": folder["_id"]}, {"$set": {"folder": mirror}})
    db[FOLDERS].update_one(
        {"_id": default_folder["_id"]},
        {"$push": {"videos": {"$each": list(folder.get("videos") or [])}}},
    )
    logger.debug(f"mirror moved folder={folder['_id']} -> default={default_folder['_id']} videos={result.modified_count}")
    return result.modified_count


def reconcile(db: Database, folder: Mapping[str, Any]) -> int:
    """Repair mirrors of folder that drifted from its current name/sharingLevel"""
    expected: Dict[str, Any] = {f"folder.{k}": folder[k] for k in MIRRORED_FIELDS}
    drifted = {"$or": [{key: {"$ne": value}} for key, value in expected.items()]}
    result = db[VIDEOS].update_many({"folder._id": folder["_id"], **drifted}, {"$set": expected})
    if result.modified_count:
        logger.warning(f"repaired {result.modified_count} drifted mirrors of folder={folder['_id']}")
    return result.modified_count
