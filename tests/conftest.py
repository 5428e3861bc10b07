from __future__ import annotations

import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from imageshare.config import Settings
from imageshare.ingestion import ImageValidator
from imageshare.main import create_app
from imageshare.object_store import LocalContentStore
from imageshare.repositories import InMemoryPostRepository
from imageshare.service import PostService


def make_png(width: int = 64, height: int = 64, color: str = "orange") -> bytes:
    img = Image.new("RGB", (width, height), color=color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture()
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture()
def content_store(upload_dir) -> LocalContentStore:
    store = LocalContentStore(upload_dir)
    store.ensure_ready()
    return store


@pytest.fixture()
def post_service(content_store) -> PostService:
    return PostService(
        validator=ImageValidator(),
        content=content_store,
        posts=InMemoryPostRepository(),
    )


@pytest.fixture()
def settings(upload_dir) -> Settings:
    return Settings(UPLOAD_DIR=str(upload_dir), LOG_LEVEL="DEBUG")


@pytest.fixture()
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client
