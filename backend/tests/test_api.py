"""API tests with TestClient: signup, connect/disconnect, files, status."""

import asyncio
import base64
import io
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fakeredis import FakeServer, aioredis
from fastapi.testclient import TestClient
from PIL import Image

from files_manager.cache import client as cache_client
from files_manager.files.storage import LocalByteStore
from files_manager.jobs.queue import get_job_queue
from files_manager.jobs.thumbnails import process_thumbnail_job
from files_manager.main import app


@pytest.fixture
def jobs():
    queue = MagicMock()
    queue.enqueue = AsyncMock()
    return queue


@pytest.fixture
def client(tmp_path, monkeypatch, jobs):
    """TestClient for the FastAPI app. Use as context manager so lifespan runs (init_db, cache).
    Redis is in-memory, the job queue is a mock, and file content goes to tmp_path."""
    monkeypatch.setenv("FILES_MANAGER_FOLDER_PATH", str(tmp_path))
    server = FakeServer()
    monkeypatch.setattr(
        cache_client.redis, "from_url", lambda url, **kw: aioredis.FakeRedis(server=server, **kw)
    )
    app.dependency_overrides[get_job_queue] = lambda: jobs
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _basic(email: str, password: str) -> dict:
    return {"Authorization": "Basic " + base64.b64encode(f"{email}:{password}".encode()).decode()}


def _signup_and_connect(client: TestClient, password: str = "pw") -> tuple:
    email = f"{uuid.uuid4().hex[:12]}@example.com"
    r = client.post("/users", json={"email": email, "password": password})
    assert r.status_code == 201
    user_id = r.json()["id"]
    r = client.get("/connect", headers=_basic(email, password))
    assert r.status_code == 200
    return user_id, {"X-Token": r.json()["token"]}


def _png() -> str:
    out = io.BytesIO()
    Image.new("RGB", (640, 480), (10, 120, 200)).save(out, format="PNG")
    return base64.b64encode(out.getvalue()).decode()


def test_status(client: TestClient) -> None:
    r = client.get("/status")
    assert r.status_code == 200
    assert r.json() == {"redis": True, "db": True}


def test_stats_counts_users(client: TestClient) -> None:
    before = client.get("/stats").json()
    _signup_and_connect(client)
    after = client.get("/stats").json()
    assert after["users"] == before["users"] + 1
    assert after["files"] == before["files"]


def test_signup_and_duplicate(client: TestClient, jobs) -> None:
    """201 with {id, email}; the same email again is 400 Already exist."""
    email = f"{uuid.uuid4().hex[:12]}@b.com"
    r = client.post("/users", json={"email": email, "password": "pw"})
    assert r.status_code == 201
    data = r.json()
    assert data["email"] == email
    assert data["id"]
    assert "password" not in data
    jobs.enqueue.assert_awaited_with("welcome", {"userId": data["id"]})
    r = client.post("/users", json={"email": email, "password": "pw"})
    assert r.status_code == 400
    assert r.json() == {"error": "Already exist"}


def test_signup_missing_fields(client: TestClient) -> None:
    r = client.post("/users", json={"password": "pw"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing email"}
    r = client.post("/users", json={"email": "x@y.z"})
    assert r.status_code == 400
    assert r.json() == {"error": "Missing password"}


def test_signup_succeeds_when_enqueue_fails(client: TestClient, jobs) -> None:
    jobs.enqueue.side_effect = ConnectionError("broker down")
    r = client.post("/users", json={"email": f"{uuid.uuid4().hex[:12]}@b.com", "password": "pw"})
    assert r.status_code == 201


def test_connect_me_disconnect(client: TestClient) -> None:
    user_id, headers = _signup_and_connect(client)
    r = client.get("/users/me", headers=headers)
    assert r.status_code == 200
    assert r.json()["id"] == user_id
    r = client.get("/disconnect", headers=headers)
    assert r.status_code == 204
    r = client.get("/users/me", headers=headers)
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}
    r = client.get("/disconnect", headers=headers)
    assert r.status_code == 401


def test_connect_rejects_bad_credentials(client: TestClient) -> None:
    email = f"{uuid.uuid4().hex[:12]}@example.com"
    client.post("/users", json={"email": email, "password": "right"})
    assert client.get("/connect", headers=_basic(email, "wrong")).status_code == 401
    assert client.get("/connect").status_code == 401
    assert client.get("/connect", headers={"Authorization": "Basic %%%"}).status_code == 401
    r = client.get("/connect", headers={"Authorization": "Basic " + base64.b64encode(b"a:b:c").decode()})
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized"}


def test_files_require_token(client: TestClient) -> None:
    assert client.get("/files").status_code == 401
    assert client.post("/files", json={"name": "a", "type": "folder"}).status_code == 401
    assert client.get("/files/1", headers={"X-Token": "bogus"}).status_code == 401
    assert client.put("/files/1/publish").status_code == 401
    assert client.put("/files/1/unpublish").status_code == 401


def test_upload_folder_and_file(client: TestClient) -> None:
    user_id, headers = _signup_and_connect(client)
    r = client.post("/files", json={"name": "images", "type": "folder"}, headers=headers)
    assert r.status_code == 201
    folder = r.json()
    assert folder == {
        "id": folder["id"],
        "userId": user_id,
        "name": "images",
        "type": "folder",
        "isPublic": False,
        "parentId": 0,
    }
    content = base64.b64encode(b"Hello Webstack!\n").decode()
    r = client.post(
        "/files",
        json={"name": "hello.txt", "type": "file", "parentId": folder["id"], "data": content},
        headers=headers,
    )
    assert r.status_code == 201
    file = r.json()
    assert file["parentId"] == folder["id"]

    r = client.get(f"/files/{file['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json() == file

    r = client.get("/files", params={"parentId": folder["id"]}, headers=headers)
    assert [f["id"] for f in r.json()] == [file["id"]]
    r = client.get("/files", headers=headers)
    assert [f["id"] for f in r.json()] == [folder["id"]]

    r = client.get(f"/files/{file['id']}/data", headers=headers)
    assert r.status_code == 200
    assert r.content == b"Hello Webstack!\n"
    assert r.headers["content-type"].startswith("text/plain")


def test_upload_errors(client: TestClient) -> None:
    _, headers = _signup_and_connect(client)
    r = client.post("/files", json={"type": "file"}, headers=headers)
    assert r.json() == {"error": "Missing name"}
    r = client.post("/files", json={"name": "a", "type": "nope"}, headers=headers)
    assert r.json() == {"error": "Missing type"}
    r = client.post("/files", json={"name": "a", "type": "file"}, headers=headers)
    plain_id = r.json()["id"]
    r = client.post("/files", json={"name": "b", "type": "file", "parentId": plain_id}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Parent is not a folder"}
    r = client.post("/files", json={"name": "b", "type": "file", "parentId": "424242424"}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Parent not found"}


def test_pagination_over_api(client: TestClient) -> None:
    _, headers = _signup_and_connect(client)
    ids = [client.post("/files", json={"name": f"f{i}", "type": "folder"}, headers=headers).json()["id"] for i in range(23)]
    page0 = client.get("/files", params={"parentId": "0", "page": "0"}, headers=headers).json()
    page1 = client.get("/files", params={"parentId": "0", "page": "1"}, headers=headers).json()
    assert [f["id"] for f in page0] == ids[:20]
    assert [f["id"] for f in page1] == ids[20:]
    bad_page = client.get("/files", params={"page": "abc"}, headers=headers).json()
    assert [f["id"] for f in bad_page] == ids[:20]


def test_visibility_between_users(client: TestClient) -> None:
    """Private files are 404 for others; publish makes them readable, even anonymously."""
    _, alice = _signup_and_connect(client)
    _, bob = _signup_and_connect(client)
    content = base64.b64encode(b"secret").decode()
    file = client.post("/files", json={"name": "s.txt", "type": "file", "data": content}, headers=alice).json()

    assert client.get(f"/files/{file['id']}", headers=bob).status_code == 404
    assert client.get(f"/files/{file['id']}/data", headers=bob).status_code == 404
    assert client.get(f"/files/{file['id']}/data").status_code == 404
    assert client.put(f"/files/{file['id']}/publish", headers=bob).status_code == 404

    r = client.put(f"/files/{file['id']}/publish", headers=alice)
    assert r.status_code == 200
    assert r.json()["isPublic"] is True
    assert client.get(f"/files/{file['id']}", headers=bob).status_code == 200
    assert client.get(f"/files/{file['id']}/data").content == b"secret"
    # Other users' public files are not listed
    assert client.get("/files", headers=bob).json() == []

    r = client.put(f"/files/{file['id']}/unpublish", headers=alice)
    assert r.status_code == 200
    unpublished = r.json()
    assert unpublished == {**file, "isPublic": False}
    assert client.get(f"/files/{file['id']}/data").status_code == 404


def test_folder_has_no_data(client: TestClient) -> None:
    _, headers = _signup_and_connect(client)
    folder = client.post("/files", json={"name": "d", "type": "folder"}, headers=headers).json()
    r = client.get(f"/files/{folder['id']}/data", headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "A folder doesn't have content"}


def test_unknown_and_malformed_ids(client: TestClient) -> None:
    _, headers = _signup_and_connect(client)
    assert client.get("/files/5f1e7d35c7ba06511e683b21", headers=headers).json() == {"error": "Not found"}
    assert client.get("/files/999999999", headers=headers).status_code == 404
    assert client.put("/files/abc/publish", headers=headers).status_code == 404


def test_image_upload_thumbnails_end_to_end(client: TestClient, jobs, tmp_path) -> None:
    """Upload image -> thumbnail job enqueued -> worker writes 500/250/100 -> each is served."""
    user_id, headers = _signup_and_connect(client)
    r = client.post("/files", json={"name": "photo.png", "type": "image", "isPublic": True, "data": _png()}, headers=headers)
    assert r.status_code == 201
    image = r.json()
    jobs.enqueue.assert_awaited_with("thumbnail", {"userId": user_id, "fileId": image["id"]})

    assert client.get(f"/files/{image['id']}/data", params={"size": "250"}, headers=headers).status_code == 404

    payload = jobs.enqueue.await_args.args[1]
    asyncio.run(process_thumbnail_job(payload, store=LocalByteStore(tmp_path)))

    for width in (500, 250, 100):
        r = client.get(f"/files/{image['id']}/data", params={"size": str(width)}, headers=headers)
        assert r.status_code == 200
        assert r.headers["content-type"] == "image/png"
        with Image.open(io.BytesIO(r.content)) as img:
            assert img.width == width
    r = client.get(f"/files/{image['id']}/data", params={"size": "42"}, headers=headers)
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid size"}


def test_data_with_bad_token_is_read_anonymously(client: TestClient) -> None:
    """An invalid X-Token on /data does not 401: public content is served, private stays 404."""
    _, headers = _signup_and_connect(client)
    content = base64.b64encode(b"shared").decode()
    public = client.post("/files", json={"name": "p.txt", "type": "file", "isPublic": True, "data": content}, headers=headers).json()
    private = client.post("/files", json={"name": "q.txt", "type": "file", "data": content}, headers=headers).json()
    bogus = {"X-Token": "not-a-session"}
    r = client.get(f"/files/{public['id']}/data", headers=bogus)
    assert r.status_code == 200
    assert r.content == b"shared"
    assert client.get(f"/files/{private['id']}/data", headers=bogus).status_code == 404
