from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .base import PostRepository, sort_posts
from ..models import NewPost, Post, SortOrder


class InMemoryPostRepository(PostRepository):
    """Process-local store; contents are lost on restart."""

    def __init__(self) -> None:
        self._posts: Dict[int, Post] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def insert(self, new_post: NewPost) -> Post:
        with self._lock:
            post = Post(
                id=self._next_id,
                title=new_post.title,
                description=new_post.description,
                image_path=new_post.image_path,
                image_type=new_post.image_type,
                created_at=datetime.now(timezone.utc),
            )
            self._posts[post.id] = post
            self._next_id += 1
        return post

    def get(self, post_id: int) -> Optional[Post]:
        with self._lock:
            return self._posts.get(post_id)

    def list(self, sort: SortOrder = SortOrder.LATEST) -> List[Post]:
        with self._lock:
            posts = list(self._posts.values())
        return sort_posts(posts, sort)

    def increment_likes(self, post_id: int) -> Optional[Post]:
        return self._increment(post_id, "likes")

    def increment_dislikes(self, post_id: int) -> Optional[Post]:
        return self._increment(post_id, "dislikes")

    def _increment(self, post_id: int, counter: str) -> Optional[Post]:
        with self._lock:
            post = self._posts.get(post_id)
            if not post:
                return None
            updated = post.model_copy(update={counter: getattr(post, counter) + 1})
            self._posts[post_id] = updated
            return updated
