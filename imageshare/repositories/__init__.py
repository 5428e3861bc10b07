from .base import PostRepository
from .in_memory import InMemoryPostRepository
from .sql import SqlPostRepository

__all__ = ["PostRepository", "InMemoryPostRepository", "SqlPostRepository"]
