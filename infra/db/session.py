from contextlib import contextmanager
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from app.settings import settings

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL, echo=False, future=True, connect_args=_connect_args)
SessionLocal = sessionmaker(
    bind=engine, autoflush=False, autocommit=False, future=True)


class Base(DeclarativeBase):
    pass


def init_db():
    from infra.db.models import JobRecord, CandidateRecord
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(session=None, factory=None):
    """Yield ``session`` untouched, or open a fresh one that commits on exit."""
    if session is not None:
        yield session
        return
    with (factory or SessionLocal)() as s:
        yield s
        s.commit()
