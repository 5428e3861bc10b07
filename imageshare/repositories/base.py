from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models import NewPost, Post, SortOrder


class PostRepository(ABC):
    """
    Repository abstraction for posts; can be backed by SQL or in-memory.

    Posts are never deleted and only their like/dislike counters change
    after insert.
    """

    @abstractmethod
    def insert(self, new_post: NewPost) -> Post:
        raise NotImplementedError

    @abstractmethod
    def get(self, post_id: int) -> Optional[Post]:
        raise NotImplementedError

    @abstractmethod
    def list(self, sort: SortOrder = SortOrder.LATEST) -> List[Post]:
        raise NotImplementedError

    @abstractmethod
    def increment_likes(self, post_id: int) -> Optional[Post]:
        raise NotImplementedError

    @abstractmethod
    def increment_dislikes(self, post_id: int) -> Optional[Post]:
        raise NotImplementedError

    def ensure_ready(self) -> None:
        """Prepares backing storage; called once before the app takes traffic."""
        return None

    def close(self) -> None:
        return None


def sort_posts(posts: List[Post], sort: SortOrder) -> List[Post]:
    ordered = sorted(posts, key=lambda p: (p.created_at, p.id))
    if sort == SortOrder.LATEST:
        ordered.reverse()
    return ordered
