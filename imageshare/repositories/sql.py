from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, update

from .base import PostRepository
from ..database import create_session_factory, init_db
from ..models import NewPost, Post, SortOrder
from ..sql_models import PostRow


class SqlPostRepository(PostRepository):
    """Durable post table; ids come from the database's autoincrement key."""

    def __init__(self, database_url: str) -> None:
        self.engine, self.SessionLocal = create_session_factory(database_url)

    def ensure_ready(self) -> None:
        init_db(self.engine)

    def insert(self, new_post: NewPost) -> Post:
        with self.SessionLocal() as db:
            row = PostRow(
                title=new_post.title,
                description=new_post.description,
                image_path=new_post.image_path,
                image_type=new_post.image_type,
                likes=0,
                dislikes=0,
                created_at=datetime.now(timezone.utc),
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_post(row)

    def get(self, post_id: int) -> Optional[Post]:
        with self.SessionLocal() as db:
            row = db.get(PostRow, post_id)
            return _to_post(row) if row else None

    def list(self, sort: SortOrder = SortOrder.LATEST) -> List[Post]:
        stmt = select(PostRow)
        if sort == SortOrder.OLDEST:
            stmt = stmt.order_by(PostRow.created_at.asc(), PostRow.id.asc())
        else:
            stmt = stmt.order_by(PostRow.created_at.desc(), PostRow.id.desc())
        with self.SessionLocal() as db:
            return [_to_post(row) for row in db.scalars(stmt).all()]

    def increment_likes(self, post_id: int) -> Optional[Post]:
        return self._increment(post_id, PostRow.likes)

    def increment_dislikes(self, post_id: int) -> Optional[Post]:
        return self._increment(post_id, PostRow.dislikes)

    def _increment(self, post_id: int, column) -> Optional[Post]:
        with self.SessionLocal() as db:
            result = db.execute(
                update(PostRow)
                .where(PostRow.id == post_id)
                .values({column: column + 1})
            )
            if result.rowcount == 0:
                db.rollback()
                return None
            db.commit()
            row = db.get(PostRow, post_id)
            return _to_post(row)

    def close(self) -> None:
        self.engine.dispose()


def _to_post(row: PostRow) -> Post:
    created_at = row.created_at
    if created_at.tzinfo is None:
        # SQLite drops the offset; stored values are always UTC.
        created_at = created_at.replace(tzinfo=timezone.utc)
    return Post(
        id=row.id,
        title=row.title,
        description=row.description or "",
        image_path=row.image_path,
        image_type=row.image_type,
        likes=row.likes,
        dislikes=row.dislikes,
        created_at=created_at,
    )
