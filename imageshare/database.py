from __future__ import annotations

from typing import Tuple

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def create_session_factory(database_url: str) -> Tuple[Engine, sessionmaker]:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # SQLite needs check_same_thread disabled for the threadpool FastAPI runs sync routes in.
        connect_args = {"check_same_thread": False}
    engine = create_engine(database_url, connect_args=connect_args)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return engine, SessionLocal


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
