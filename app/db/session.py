"""Engine and session factory."""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite connections are shared with the threadpool FastAPI runs sync deps in
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(settings.database_url, **_engine_kwargs(settings.database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create missing tables (local SQLite; deployed databases use Alembic)."""
    import app.db.models  # noqa: F401
    from app.db.base import Base

    Base.metadata.create_all(bind=engine)
