from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, create_engine

from calshare.core.config import settings
from calshare.core.errors import ConflictError

logger = logging.getLogger(__name__)


def _build_engine():
    connect_args = {}
    if settings.DATABASE_URL.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(settings.DATABASE_URL, connect_args=connect_args)


engine = _build_engine()


def init_db() -> None:
    """Create database tables in environments without migrations."""
    import calshare.models  # noqa: F401  registers tables on the metadata

    SQLModel.metadata.create_all(bind=engine)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def commit_or_conflict(session: Session, detail: str) -> None:
    """Commit, turning a unique-key violation into a ConflictError.

    Duplicate checks are plain reads, so two concurrent requests can both pass
    them; the loser of that race ends up here.
    """
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        logger.warning(f"Integrity error on commit: {exc.orig}")
        raise ConflictError(detail) from exc


SessionDep = Annotated[Session, Depends(get_session)]
