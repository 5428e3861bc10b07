from __future__ import annotations

import logging
from typing import List, Optional

from .errors import MalformedRequestError, NotFoundError, StorageError, ValidationError
from .ingestion import ImageValidator, extension_for
from .models import NewPost, Post, SortOrder
from .object_store import ContentStore
from .repositories import PostRepository

log = logging.getLogger("imageshare.service")


def parse_sort(raw: Optional[str]) -> SortOrder:
    """Anything other than "oldest" lists the newest posts first."""
    return SortOrder.OLDEST if raw == SortOrder.OLDEST.value else SortOrder.LATEST


def parse_post_id(raw: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedRequestError("Invalid post ID") from exc


class PostService:
    """
    Coordinates upload validation, content storage, and the post repository.
    """

    def __init__(
        self,
        validator: ImageValidator,
        content: ContentStore,
        posts: PostRepository,
    ) -> None:
        self.validator = validator
        self.content = content
        self.posts = posts

    def check_upload(self, content_type: Optional[str], size: int) -> None:
        """Rejects an upload from its declared type and size, before the body is read."""
        try:
            self.validator.validate(content_type, size)
        except ValidationError as exc:
            log.warning("Rejected upload (%s, %d bytes): %s", content_type, size, exc.message)
            raise

    def create_post(
        self,
        *,
        title: Optional[str],
        description: Optional[str],
        content_type: Optional[str],
        data: bytes,
    ) -> Post:
        self.check_upload(content_type, len(data))

        if not (title or "").strip():
            raise ValidationError("Invalid post data", errors=["title is required"])
        description = description or ""

        image_path = self.content.write(data, extension_for(content_type))

        try:
            post = self.posts.insert(
                NewPost(
                    title=title,
                    description=description,
                    image_path=image_path,
                    image_type=content_type.lower(),
                )
            )
        except Exception as exc:
            log.error("Failed to record post for %s", image_path, exc_info=True)
            self.content.delete(image_path)
            raise StorageError("Failed to create post") from exc

        log.info("Created post %d (%s, %d bytes)", post.id, post.image_type, len(data))
        return post

    def get_post(self, post_id: int) -> Post:
        post = self.posts.get(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post

    def list_posts(self, sort: SortOrder = SortOrder.LATEST) -> List[Post]:
        posts = self.posts.list(sort)
        log.debug("Listed %d posts (%s)", len(posts), sort.value)
        return posts

    def like_post(self, post_id: int) -> Post:
        post = self.posts.increment_likes(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post

    def dislike_post(self, post_id: int) -> Post:
        post = self.posts.increment_dislikes(post_id)
        if not post:
            raise NotFoundError("Post not found")
        return post
