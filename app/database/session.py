from contextlib import contextmanager

from sqlalchemy.orm import sessionmaker

from app.database.engine import engine

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(session_factory=None):
    """Session for jobs run outside a request; rolls back on error."""
    db = (session_factory or SessionLocal)()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


__all__ = ["SessionLocal", "get_db", "session_scope"]
