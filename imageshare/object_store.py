from __future__ import annotations

import logging
import os
import tempfile
import uuid
from abc import ABC, abstractmethod
from io import BytesIO
from pathlib import Path
from typing import Optional

from minio import Minio
from minio.error import S3Error
from urllib3.exceptions import HTTPError

from .errors import NotFoundError, StorageError

log = logging.getLogger("imageshare.object_store")

URL_PREFIX = "/uploads/"

# Transport failures and rejected arguments (e.g. an invalid bucket name) from the minio client.
CLIENT_ERRORS = (HTTPError, ValueError)

CONTENT_TYPES = {
    "jpeg": "image/jpeg",
    "jpg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
}


def content_type_for(name: str) -> str:
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return CONTENT_TYPES.get(ext, "application/octet-stream")


def name_from_path(path_or_name: str) -> str:
    if path_or_name.startswith(URL_PREFIX):
        return path_or_name[len(URL_PREFIX):]
    return path_or_name


def _is_safe_name(name: str) -> bool:
    return bool(name) and "/" not in name and "\\" not in name and ".." not in name


class ContentStore(ABC):
    """
    Byte storage for uploaded images. Files are named from a random
    identifier space and addressed as `/uploads/{name}.{ext}`.
    """

    @abstractmethod
    def ensure_ready(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def _put(self, name: str, content: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    def _get(self, name: str) -> Optional[bytes]:
        raise NotImplementedError

    @abstractmethod
    def _remove(self, name: str) -> None:
        raise NotImplementedError

    def write(self, content: bytes, extension: str) -> str:
        name = f"{uuid.uuid4().hex}.{extension}"
        self._put(name, content)
        log.debug("Stored %d bytes as %s", len(content), name)
        return f"{URL_PREFIX}{name}"

    def read(self, name: str) -> bytes:
        name = name_from_path(name)
        if not _is_safe_name(name):
            raise NotFoundError("Image not found")
        content = self._get(name)
        if content is None:
            raise NotFoundError("Image not found")
        return content

    def delete(self, path_or_name: str) -> None:
        name = name_from_path(path_or_name)
        if not _is_safe_name(name):
            return
        try:
            self._remove(name)
        except StorageError as exc:
            log.warning("Could not remove %s: %s", name, exc)


class LocalContentStore(ContentStore):
    def __init__(self, root: str | os.PathLike[str]) -> None:
        self.root = Path(root)

    def ensure_ready(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create upload directory {self.root}: {exc}") from exc

    def _put(self, name: str, content: bytes) -> None:
        tmp_name = None
        try:
            # Write beside the target so the final rename stays on one filesystem.
            with tempfile.NamedTemporaryFile(dir=self.root, prefix=".tmp-", delete=False) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.root / name)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(f"Failed to write {name}: {exc}") from exc

    def _get(self, name: str) -> Optional[bytes]:
        path = self.root / name
        if not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as exc:
            raise StorageError(f"Failed to read {name}: {exc}") from exc

    def _remove(self, name: str) -> None:
        try:
            (self.root / name).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to remove {name}: {exc}") from exc


class MinioContentStore(ContentStore):
    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket_name: str,
        secure: bool = False,
        client: Optional[Minio] = None,
    ) -> None:
        self.client = client or Minio(
            endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
        )
        self.bucket_name = bucket_name

    def ensure_ready(self) -> None:
        try:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
        except (S3Error, *CLIENT_ERRORS) as exc:
            raise StorageError(f"Cannot prepare bucket {self.bucket_name}: {exc}") from exc

    def _put(self, name: str, content: bytes) -> None:
        try:
            self.client.put_object(
                self.bucket_name,
                name,
                BytesIO(content),
                len(content),
                content_type=content_type_for(name),
            )
        except (S3Error, *CLIENT_ERRORS) as exc:
            raise StorageError(f"Failed to write {name}: {exc}") from exc

    def _get(self, name: str) -> Optional[bytes]:
        try:
            response = self.client.get_object(self.bucket_name, name)
        except S3Error as exc:
            if exc.code in ("NoSuchKey", "NoSuchObject"):
                return None
            raise StorageError(f"Failed to read {name}: {exc}") from exc
        except CLIENT_ERRORS as exc:
            raise StorageError(f"Failed to read {name}: {exc}") from exc
        try:
            return response.read()
        except CLIENT_ERRORS as exc:
            raise StorageError(f"Failed to read {name}: {exc}") from exc
        finally:
            response.close()
            response.release_conn()

    def _remove(self, name: str) -> None:
        try:
            self.client.remove_object(self.bucket_name, name)
        except (S3Error, *CLIENT_ERRORS) as exc:
            raise StorageError(f"Failed to remove {name}: {exc}") from exc
