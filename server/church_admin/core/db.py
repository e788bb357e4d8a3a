from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from church_admin.core.config import settings
from church_admin.core.errors import ConflictError, StoreUnavailableError


engine = create_engine(settings.DATABASE_URL, future=True, pool_pre_ping=True)
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)
Base = declarative_base()


def get_db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def unit_of_work(db: Session, *, conflict_message: str = "The record was changed by another request") -> Iterator[Session]:
    """Commit everything done inside the block as one transaction.

    Any failure rolls the whole block back. Uniqueness violations surface as
    ``ConflictError`` and connectivity failures as ``StoreUnavailableError``.
    """

    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(conflict_message) from exc
    except OperationalError as exc:
        db.rollback()
        raise StoreUnavailableError() from exc
    except BaseException:
        db.rollback()
        raise
