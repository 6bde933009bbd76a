import logging
import logging.config
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import yaml
from fastapi import Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.database import Database
from pymongo.errors import PyMongoError

import folders
from config import get_settings
from copying import copy_folder
from database import ensure_indexes, get_db, serialize
from errors import FolderError

settings = get_settings()


def init_logger() -> logging.Logger:
    try:
        with open(settings.logger_config, "r") as f:
            config = yaml.safe_load(f)
        logging.config.dictConfig(config)
        logger = logging.getLogger(settings.logger_name)
        logger.debug("Logger configured")
        return logger
    except Exception as e:
        logging.basicConfig(level=logging.INFO)
        logger = logging.getLogger(__name__)
        logger.error(f"Logger initialization failed: {e}")
        return logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.logger = init_logger()
    try:
        ensure_indexes(get_db())
    except PyMongoError as e:
        app.state.logger.error(f"Index setup failed: {e}")
    yield
    app.state.logger.info("Application shutdown")


app = FastAPI(title="Curated Folders API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger = logging.getLogger(__name__)


def client_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"err": message})


@app.exception_handler(FolderError)
async def folder_error_handler(request: Request, exc: FolderError):
    return client_error(exc.message)


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return client_error(str(exc))


@app.exception_handler(ValidationError)
async def document_error_handler(request: Request, exc: ValidationError):
    return client_error(f"invalid document: {exc.errors()[0]['msg']}.")


@app.exception_handler(RequestValidationError)
async def request_error_handler(request: Request, exc: RequestValidationError):
    return client_error(f"invalid request: {exc.errors()[0]['msg']}.")


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.method} {request.url.path}")
    return client_error(str(exc))


@app.get("/health")
def health(db: Database = Depends(get_db)):
    response = {"backend": "running", "database": db.name, "connection_status": "Not Connected"}
    try:
        db.command("ping")
        response["connection_status"] = "Connected"
    except PyMongoError as e:
        response["connection_status"] = f"Error: {str(e)[:50]}"
    return response


@app.post("/folders")
def create_folder(payload: Dict[str, Any] = Body(default={}), db: Database = Depends(get_db)):
    """
    Create a folder for payload["userId"].
    - name, sharingLevel (default 1) and tags come from the client
    - playlistName, youtubePlaylistId and videos come from the playlist import
    """
    folder = folders.create_folder(db, payload)
    return {"success": True, "folder": serialize(folder)}


@app.get("/folders")
def list_folders(
    keyword: Optional[str] = None,
    sort: Optional[str] = None,
    strict: Optional[str] = None,
    db: Database = Depends(get_db),
):
    """Public folders, or a link-shared one when keyword is its id"""
    items = folders.list_folders(db, keyword=keyword, sort=sort, strict=strict)
    return {"success": True, "folders": serialize(items)}


@app.get("/folders/{folder_id}")
def get_folder(folder_id: str, db: Database = Depends(get_db)):
    return {"success": True, "folder": serialize(folders.get_folder(db, folder_id))}


@app.patch("/folders/{folder_id}")
def update_folder(folder_id: str, payload: Dict[str, Any] = Body(default={}), db: Database = Depends(get_db)):
    folder = folders.update_folder(db, folder_id, payload)
    return {"success": True, "folder": serialize(folder)}


@app.delete("/folders/{folder_id}")
def delete_folder(folder_id: str, db: Database = Depends(get_db)):
    """Delete a non-default folder; its videos move to the owner's default folder"""
    return {"success": True, "folder": serialize(folders.delete_folder(db, folder_id))}


@app.post("/folders/{folder_id}/bookmark")
def bookmark_folder(folder_id: str, db: Database = Depends(get_db)):
    return {"success": True, "folder": serialize(folders.set_bookmark(db, folder_id, True))}


@app.post("/folders/{folder_id}/unbookmark")
def unbookmark_folder(folder_id: str, db: Database = Depends(get_db)):
    return {"success": True, "folder": serialize(folders.set_bookmark(db, folder_id, False))}


@app.post("/folders/{folder_id}/copy")
def copy(folder_id: str, payload: Dict[str, Any] = Body(default={}), db: Database = Depends(get_db)):
    new_folder, new_videos, origin_folder = copy_folder(db, folder_id, payload)
    return {
        "success": True,
        "newFolder": serialize(new_folder),
        "newVideos": serialize(new_videos),
        "originFolder": serialize(origin_folder),
    }


@app.post("/folders/{folder_id}/setAsDefault")
def set_as_default(folder_id: str, payload: Dict[str, Any] = Body(default={}), db: Database = Depends(get_db)):
    new_default, old_default = folders.set_default(db, folder_id, payload)
    return {
        "success": True,
        "newDefaultFolder": serialize(new_default),
        "oldDefaultFolder": serialize(old_default),
    }


@app.post("/folders/{folder_id}/reconcile")
def reconcile_folder(folder_id: str, db: Database = Depends(get_db)):
    """Repair video mirrors that drifted from the folder's name/sharingLevel"""
    folder, repaired = folders.reconcile_folder(db, folder_id)
    return {"success": True, "folder": serialize(folder), "repaired": repaired}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
