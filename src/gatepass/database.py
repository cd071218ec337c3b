"""
Database connection/session configuration for the Gatepass backend.
Uses SQLAlchemy with PostgreSQL; DATABASE_URL overrides the URL entirely.
"""

import logging
import os
from contextlib import contextmanager

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine.url import URL
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from .errors import UnavailableError, ValidationError

load_dotenv()

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
def get_database_url():
    """
    Returns the SQLAlchemy URL for the visit store.
    DATABASE_URL wins when set; otherwise the URL is built from:
        - POSTGRES_USER
        - POSTGRES_PASSWORD
        - POSTGRES_DB
        - POSTGRES_HOST
        - POSTGRES_PORT
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return URL.create(
        drivername="postgresql+psycopg2",
        username=os.getenv("POSTGRES_USER"),
        password=os.getenv("POSTGRES_PASSWORD"),
        host=os.getenv("POSTGRES_HOST", "localhost"),
        port=int(os.getenv("POSTGRES_PORT", 5432)),
        database=os.getenv("POSTGRES_DB"),
    ).render_as_string(hide_password=False)


SQLALCHEMY_DATABASE_URL = get_database_url()

engine = create_engine(SQLALCHEMY_DATABASE_URL, pool_pre_ping=True, pool_recycle=3600)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# PUBLIC_INTERFACE
def get_db():
    """
    Yields a new database session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# PUBLIC_INTERFACE
@contextmanager
def storage_guard(db: Session):
    """
    Rolls the session back on driver failures and re-raises them in the
    visit desk's error taxonomy:
        - IntegrityError, DataError: the stored rows refused the values (ValidationError)
        - OperationalError, InterfaceError: the store cannot be reached (UnavailableError)
    Errors from the visit desk itself pass through.
    """
    try:
        yield db
    except (IntegrityError, DataError) as exc:
        db.rollback()
        logger.warning("Visit store refused the write: %s", exc.orig)
        raise ValidationError("Values rejected by the visit store", [str(exc.orig)]) from exc
    except (OperationalError, InterfaceError) as exc:
        db.rollback()
        logger.error("Visit store unavailable: %s", exc)
        raise UnavailableError("Visit store is unavailable") from exc
