from bson import ObjectId
from fastapi.testclient import TestClient

import folders
from database import FOLDERS, VIDEOS, get_db
from main import app


def create(client, **body):
    response = client.post("/folders", json=body)
    assert response.status_code == 200, response.json()
    return response.json()["folder"]


def test_create_scenario(client, db, user, descriptors):
    create(client, userId=str(user), name="Default")

    response = client.post("/folders", json={
        "userId": str(user), "name": "Mix", "sharingLevel": 2, "videos": descriptors(3),
    })

    body = response.json()
    assert response.status_code == 200
    assert body["success"] is True
    assert body["folder"]["name"] == "Mix"
    assert len(body["folder"]["videos"]) == 3
    assert body["folder"]["user"] == str(user)
    stored = db[VIDEOS].find({"folder._id": ObjectId(body["folder"]["_id"])})
    assert [v["folder"]["sharingLevel"] for v in stored] == [2, 2, 2]


def test_errors_are_400_with_err(client, user):
    cases = [
        client.post("/folders", json={"userId": "nope", "name": "x"}),
        client.post("/folders", json={"userId": str(user), "name": "x", "sharingLevel": 0}),
        client.post("/folders", json={"userId": str(user), "name": "x", "tags": ["way too long tag"]}),
        client.get("/folders/not-an-id"),
        client.get(f"/folders/{ObjectId()}"),
        client.get("/folders", params={"sort": "oldest"}),
        client.patch(f"/folders/{ObjectId()}", json={}),
    ]
    for response in cases:
        assert response.status_code == 400
        assert set(response.json()) == {"err"}

    assert cases[4].json() == {"err": "folder does not exist."}
    assert cases[5].json() == {"err": "invalid sort."}


def test_non_object_body_rejected(client):
    response = client.post("/folders", json=["not", "an", "object"])
    assert response.status_code == 400
    assert "err" in response.json()


def test_non_list_videos_rejected(client, db, user):
    response = client.post("/folders", json={"userId": str(user), "name": "x", "videos": 5})
    assert response.status_code == 400
    assert response.json() == {"err": "videos must be an array."}
    assert db[FOLDERS].count_documents({}) == 0


def test_unexpected_errors_are_400(db, monkeypatch):
    def broken(db, folder_id):
        raise RuntimeError("boom")

    monkeypatch.setattr(folders, "get_folder", broken)
    app.dependency_overrides[get_db] = lambda: db
    try:
        response = TestClient(app, raise_server_exceptions=False).get(f"/folders/{ObjectId()}")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 400
    assert response.json() == {"err": "boom"}


def test_read_update_and_list(client, user):
    folder = create(client, userId=str(user), name="Mine", sharingLevel=3)

    assert client.get(f"/folders/{folder['_id']}").json()["folder"]["name"] == "Mine"

    response = client.patch(f"/folders/{folder['_id']}", json={"name": "Ours", "tags": ["pop"]})
    assert response.json()["folder"]["name"] == "Ours"
    assert response.json()["folder"]["tags"] == ["pop"]

    listed = client.get("/folders").json()
    assert listed["success"] is True
    assert [f["_id"] for f in listed["folders"]] == [folder["_id"]]


def test_delete_default_rejected(client, user):
    folder = create(client, userId=str(user), name="Default")
    response = client.delete(f"/folders/{folder['_id']}")
    assert response.status_code == 400
    assert response.json() == {"err": "default folder cannot be deleted."}


def test_delete_moves_videos(client, db, user, descriptors):
    default = create(client, userId=str(user), name="Default")
    folder = create(client, userId=str(user), name="Mix", videos=descriptors(2))

    response = client.delete(f"/folders/{folder['_id']}")

    assert response.status_code == 200
    assert response.json()["folder"]["_id"] == folder["_id"]
    assert len(client.get(f"/folders/{default['_id']}").json()["folder"]["videos"]) == 2
    assert db[FOLDERS].count_documents({}) == 1


def test_bookmark_endpoints(client, user):
    folder = create(client, userId=str(user), name="Default")
    url = f"/folders/{folder['_id']}"

    assert client.post(f"{url}/bookmark").json()["folder"]["isBookmarked"] is True
    again = client.post(f"{url}/bookmark")
    assert again.status_code == 400
    assert again.json() == {"err": "folder does not exist, or already bookmarked folder."}
    assert client.post(f"{url}/unbookmark").json()["folder"]["isBookmarked"] is False
    assert client.post(f"{url}/unbookmark").status_code == 400


def test_copy_endpoint(client, user, make_user, descriptors):
    create(client, userId=str(user), name="Default")
    folder = create(client, userId=str(user), name="Shared", sharingLevel=3, videos=descriptors(2))
    copier = make_user("copier")

    response = client.post(f"/folders/{folder['_id']}/copy", json={"userId": str(copier)})

    body = response.json()
    assert response.status_code == 200
    assert set(body) == {"success", "newFolder", "newVideos", "originFolder"}
    assert body["newFolder"]["user"] == str(copier)
    assert len(body["newVideos"]) == 2
    assert body["originFolder"]["sharedCount"] == 1


def test_set_as_default_endpoint(client, user):
    old = create(client, userId=str(user), name="Default")
    new = create(client, userId=str(user), name="Next")

    response = client.post(f"/folders/{new['_id']}/setAsDefault", json={"userId": str(user)})
    body = response.json()
    assert body["newDefaultFolder"]["isDefault"] is True
    assert body["oldDefaultFolder"]["_id"] == old["_id"]
    assert body["oldDefaultFolder"]["isDefault"] is False

    again = client.post(f"/folders/{new['_id']}/setAsDefault", json={"userId": str(user)})
    assert again.status_code == 400
    assert again.json() == {"err": "already default folder."}


def test_reconcile_endpoint(client, db, user, descriptors):
    folder = create(client, userId=str(user), name="Mix", videos=descriptors(1))
    db[VIDEOS].update_many({}, {"$set": {"folder.sharingLevel": 3}})

    body = client.post(f"/folders/{folder['_id']}/reconcile").json()

    assert body["repaired"] == 1
    assert db[VIDEOS].find_one()["folder"]["sharingLevel"] == 1
