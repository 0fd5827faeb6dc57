"""FastAPI dependencies for database access."""

from collections.abc import Iterator

from sqlalchemy.orm import Session

from api_registry.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """Yield one request-scoped session."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
