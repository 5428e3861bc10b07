from __future__ import annotations

from typing import Iterable, Optional

from .errors import ValidationError

MAX_SIZE_BYTES = 5 * 1024 * 1024  # 5MB, inclusive
ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/gif"})

UNSUPPORTED_TYPE = "unsupported type"
TOO_LARGE = "too large"


def extension_for(content_type: str) -> str:
    return content_type.split("/", 1)[1].lower()


class ImageValidator:
    """
    Accepts or rejects an upload from its declared content type and size.
    The bytes themselves are never inspected, so a spoofed type passes.
    """

    def __init__(
        self,
        max_bytes: int = MAX_SIZE_BYTES,
        allowed_types: Iterable[str] = ALLOWED_CONTENT_TYPES,
    ) -> None:
        self.max_bytes = max_bytes
        self.allowed_types = frozenset(t.lower() for t in allowed_types)

    def check(self, content_type: Optional[str], size: int) -> Optional[str]:
        if not content_type or content_type.lower() not in self.allowed_types:
            return UNSUPPORTED_TYPE
        if size > self.max_bytes:
            return TOO_LARGE
        return None

    def validate(self, content_type: Optional[str], size: int) -> None:
        reason = self.check(content_type, size)
        if reason:
            raise ValidationError(reason)
