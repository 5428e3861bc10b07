from __future__ import annotations

import re

from fastapi.testclient import TestClient
from starlette.datastructures import UploadFile as StarletteUploadFile

from imageshare.ingestion import MAX_SIZE_BYTES, ImageValidator
from imageshare.main import create_app
from imageshare.object_store import MinioContentStore
from imageshare.repositories import InMemoryPostRepository
from imageshare.service import PostService

from .conftest import make_png
from .test_object_store import DroppingMinio


def _upload(client, title="Sunset", description="", data=None, content_type="image/png"):
    files = {"image": ("sunset.png", data if data is not None else make_png(), content_type)}
    return client.post("/api/posts", data={"title": title, "description": description}, files=files)


def test_health(client) -> None:
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_create_get_like_scenario(client) -> None:
    png = make_png(120, 90)
    res = _upload(client, data=png)
    assert res.status_code == 201
    post = res.json()
    assert post["likes"] == 0
    assert post["dislikes"] == 0
    assert post["imageType"] == "image/png"
    assert post["title"] == "Sunset"
    assert post["description"] == ""
    assert re.fullmatch(r"/uploads/[0-9a-f]+\.png", post["imagePath"])
    assert set(post) == {
        "id", "title", "description", "imagePath", "imageType", "likes", "dislikes", "createdAt"
    }

    fetched = client.get(f"/api/posts/{post['id']}")
    assert fetched.status_code == 200
    assert fetched.json() == post

    liked = client.post(f"/api/posts/{post['id']}/like")
    assert liked.status_code == 200
    assert liked.json()["likes"] == 1
    assert liked.json()["dislikes"] == 0

    disliked = client.post(f"/api/posts/{post['id']}/dislike")
    assert disliked.json()["dislikes"] == 1

    image = client.get(post["imagePath"])
    assert image.status_code == 200
    assert image.headers["content-type"] == "image/png"
    assert image.content == png


def test_missing_file_rejected(client) -> None:
    res = client.post("/api/posts", data={"title": "No image"})
    assert res.status_code == 400
    assert res.json()["message"] == "No image file uploaded"


def test_unsupported_type_rejected(client) -> None:
    res = _upload(client, data=b"RIFF....WEBP", content_type="image/webp")
    assert res.status_code == 400
    assert res.json()["message"] == "unsupported type"
    assert client.get("/api/posts").json() == []


def test_oversized_file_rejected(client) -> None:
    res = _upload(client, data=b"\0" * (5 * 1024 * 1024 + 1))
    assert res.status_code == 400
    assert res.json()["message"] == "too large"


def test_empty_title_rejected(client) -> None:
    res = _upload(client, title="")
    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "Invalid post data"
    assert body["errors"] == ["title is required"]


def test_list_sorting(client) -> None:
    ids = [_upload(client, title=t).json()["id"] for t in ["a", "b", "c"]]
    latest = [p["id"] for p in client.get("/api/posts").json()]
    oldest = [p["id"] for p in client.get("/api/posts", params={"sort": "oldest"}).json()]
    fallback = [p["id"] for p in client.get("/api/posts", params={"sort": "bogus"}).json()]
    assert oldest == ids
    assert latest == list(reversed(ids))
    assert fallback == latest


def test_like_unknown_post(client) -> None:
    post = _upload(client).json()
    res = client.post("/api/posts/999999/like")
    assert res.status_code == 404
    assert res.json() == {"message": "Post not found"}
    assert client.get(f"/api/posts/{post['id']}").json()["likes"] == 0


def test_unknown_upload_is_not_found(client) -> None:
    assert client.get("/uploads/missing.png").status_code == 404


class SpyRepository(InMemoryPostRepository):
    def __init__(self):
        super().__init__()
        self.lookups = 0

    def get(self, post_id):
        self.lookups += 1
        return super().get(post_id)

    def increment_likes(self, post_id):
        self.lookups += 1
        return super().increment_likes(post_id)


def test_malformed_id_skips_lookup(settings, content_store) -> None:
    repo = SpyRepository()
    service = PostService(validator=ImageValidator(), content=content_store, posts=repo)
    with TestClient(create_app(settings, post_service=service)) as client:
        res = client.get("/api/posts/abc")
        assert res.status_code == 400
        assert res.json() == {"message": "Invalid post ID"}
        assert client.post("/api/posts/abc/like").status_code == 400
        assert client.post("/api/posts/abc/dislike").status_code == 400
    assert repo.lookups == 0


def test_sql_backend_app(tmp_path, png_bytes) -> None:
    from imageshare.config import Settings

    settings = Settings(
        UPLOAD_DIR=str(tmp_path / "uploads"),
        REPOSITORY_BACKEND="sql",
        DATABASE_URL=f"sqlite:///{tmp_path / 'app.db'}",
    )
    with TestClient(create_app(settings)) as client:
        post = _upload(client, data=png_bytes).json()
        assert post["id"] == 1
        assert client.post(f"/api/posts/{post['id']}/like").json()["likes"] == 1
        assert client.get(f"/api/posts/{post['id']}").json()["likes"] == 1


def test_text_image_field_is_treated_as_missing_file(client) -> None:
    res = client.post("/api/posts", data={"title": "x", "image": "notafile"})
    assert res.status_code == 400
    body = res.json()
    assert body["message"] == "No image file uploaded"
    assert body["errors"]
    assert client.get("/api/posts").json() == []


def test_oversized_upload_rejected_before_body_is_read(client, monkeypatch) -> None:
    reads = []
    original_read = StarletteUploadFile.read

    async def recording_read(self, size: int = -1):
        reads.append(size)
        return await original_read(self, size)

    monkeypatch.setattr(StarletteUploadFile, "read", recording_read)

    res = _upload(client, data=b"\0" * (MAX_SIZE_BYTES + 1))
    assert res.status_code == 400
    assert res.json()["message"] == "too large"
    assert reads == []

    assert _upload(client).status_code == 201
    assert reads == [MAX_SIZE_BYTES + 1]


def test_minio_transport_failure_creates_no_post(settings) -> None:
    store = MinioContentStore(
        "localhost:9000",
        access_key="key",
        secret_key="secret",
        bucket_name="imageshare",
        client=DroppingMinio(),
    )
    repo = InMemoryPostRepository()
    service = PostService(validator=ImageValidator(), content=store, posts=repo)
    with TestClient(create_app(settings, post_service=service)) as client:
        res = _upload(client)
        assert res.status_code == 500
        assert res.json() == {"message": "Failed to create post"}
        assert client.get("/api/posts").json() == []
    assert repo.list() == []


def test_storage_prepared_on_startup_not_on_create(tmp_path) -> None:
    from imageshare.config import Settings

    upload_dir = tmp_path / "uploads"
    db_file = tmp_path / "app.db"
    settings = Settings(
        UPLOAD_DIR=str(upload_dir),
        REPOSITORY_BACKEND="sql",
        DATABASE_URL=f"sqlite:///{db_file}",
    )
    app = create_app(settings)
    assert not upload_dir.exists()
    assert not db_file.exists()
    with TestClient(app) as client:
        assert upload_dir.is_dir()
        assert db_file.exists()
        assert client.get("/api/posts").json() == []
