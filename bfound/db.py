from contextlib import contextmanager

from sqlmodel import SQLModel, Session, create_engine

from .config import get_settings

_ENGINE = None
_ENGINE_URL = None  # current engine's URL, so a changed setting swaps the engine


def get_engine():
    global _ENGINE, _ENGINE_URL
    url = get_settings().database_url
    if _ENGINE is None or _ENGINE_URL != url:
        if _ENGINE is not None:
            _ENGINE.dispose()
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _ENGINE = create_engine(url, echo=False, connect_args=connect_args)
        _ENGINE_URL = url
    return _ENGINE


def reset_engine():
    """For tests: drop the cached engine and settings so new BFOUND_* env vars apply."""
    global _ENGINE, _ENGINE_URL
    if _ENGINE is not None:
        _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_URL = None
    get_settings.cache_clear()


def init_db():
    from . import models  # noqa: F401  registers the tables

    engine = get_engine()
    SQLModel.metadata.create_all(engine)


def get_session():
    # keep objects alive after commit so returned rows retain values
    return Session(get_engine(), expire_on_commit=False)


@contextmanager
def session_scope():
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
