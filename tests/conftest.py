import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database import USERS, get_db
from main import app


@pytest.fixture
def db():
    return mongomock.MongoClient()["curated_folders_test"]


@pytest.fixture
def make_user(db):
    def _make(name="tester"):
        _id = ObjectId()
        db[USERS].insert_one({"_id": _id, "name": name})
        return _id
    return _make


@pytest.fixture
def user(make_user):
    return make_user("owner")


@pytest.fixture
def descriptors():
    def _make(count, prefix="yt"):
        return [
            {
                "youtubeId": f"{prefix}{i}",
                "title": f"Video {i}",
                "tags": ["music"],
                "originDuration": 200,
                "duration": 200,
                "thumbnail": f"https://img.example/{prefix}{i}.jpg",
            }
            for i in range(count)
        ]
    return _make


@pytest.fixture
def client(db):
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()
