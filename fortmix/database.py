from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


# SQLAlchemy Base for ORM models
class Base(DeclarativeBase):
    pass


def normalize_url(url: str) -> str:
    """Hosted Postgres providers hand out postgres:// URLs, SQLAlchemy wants postgresql://."""
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Store handle: one engine and one session factory per application.

    The same service code runs on the embedded SQLite store and on a hosted
    PostgreSQL; only the engine options below differ per backend.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = normalize_url(url)
        self.backend = make_url(self.url).get_backend_name()

        if self.backend == "sqlite":
            # Writers wait on each other instead of failing straight away
            self.engine = create_engine(
                self.url,
                echo=echo,
                connect_args={"check_same_thread": False, "timeout": 30},
            )
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self.engine = create_engine(
                self.url,
                echo=echo,
                pool_pre_ping=True,
            )

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    def create_all(self):
        """Create every table registered on Base."""
        from fortmix import models  # noqa: F401  (registers all mappers)

        Base.metadata.create_all(bind=self.engine)

    def dispose(self):
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.db.SessionLocal()
    try:
        yield db
    finally:
        db.close()
