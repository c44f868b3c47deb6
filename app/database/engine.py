from sqlmodel import create_engine, SQLModel, Session
from sqlmodel.pool import StaticPool
from typing import Generator

from app.core.config import settings

DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("sqlite"):
    # Local development without PostgreSQL
    engine = create_engine(
        DATABASE_URL,
        echo=settings.SQL_ECHO,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool if DATABASE_URL in ("sqlite://", "sqlite:///:memory:") else None,
    )
else:
    engine = create_engine(
        DATABASE_URL,
        echo=settings.SQL_ECHO,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600
    )

def create_db_and_tables():
    # Register table models on SQLModel.metadata
    from app.models import volunteer  # noqa: F401

    SQLModel.metadata.create_all(engine)

def get_db() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session
