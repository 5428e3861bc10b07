from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SortOrder(str, Enum):
    LATEST = "latest"
    OLDEST = "oldest"


class NewPost(BaseModel):
    """Post fields supplied before the repository assigns id and timestamp."""

    title: str = Field(min_length=1)
    description: str = ""
    image_path: str
    image_type: str


class Post(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    id: int
    title: str
    description: str = ""
    image_path: str
    image_type: str
    likes: int = Field(default=0, ge=0)
    dislikes: int = Field(default=0, ge=0)
    created_at: datetime

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
