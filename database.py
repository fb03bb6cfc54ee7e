# database.py
"""
SQLAlchemy database connection and session management.

This module provides:
- Database engine configuration (MS SQL Server in production, SQLite locally)
- Session factory for dependency injection
- Connection utilities

Usage:
     from database import get_session, engine

     # In FastAPI routes:
     @router.get("/items")
     def get_items(db: Session = Depends(get_session)):
          return db.query(Item).all()
     """
import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

import config

logger = logging.getLogger(__name__)


def build_engine(url: str = config.DATABASE_URL, echo: bool = config.SQL_ECHO) -> Engine:
     """Create the engine; pooling options only apply to server databases."""
     if url.startswith("sqlite"):
          return create_engine(url, echo=echo, connect_args={"check_same_thread": False})
     return create_engine(
          url,
          poolclass=QueuePool,
          pool_size=5,
          max_overflow=10,
          pool_timeout=30,
          pool_recycle=1800,  # Recycle connections after 30 minutes
          echo=echo,
     )


def build_session_factory(bind: Engine) -> sessionmaker:
     return sessionmaker(
          bind=bind,
          autocommit=False,
          autoflush=False,
          expire_on_commit=False,
     )


engine = build_engine()

# Session factory
SessionLocal = build_session_factory(engine)


def get_session() -> Generator[Session, None, None]:
     """
     FastAPI dependency that provides a database session.

     Yields:
          Session: SQLAlchemy database session
     """
     session = SessionLocal()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


@contextmanager
def get_session_context(factory: sessionmaker = None) -> Generator[Session, None, None]:
     """
     Context manager for database sessions (for use outside FastAPI routes,
     e.g. scheduler jobs).

     Usage:
          with get_session_context() as db:
               invoices = db.query(Invoice).all()
     """
     session = (factory or SessionLocal)()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


def init_db(bind: Engine = None) -> None:
     """
     Initialize database tables.

     Creates all tables defined in the models if they don't exist.
     For production, use Alembic migrations instead.
     """
     from models import Base
     Base.metadata.create_all(bind=bind or engine)


def check_connection() -> bool:
     """
     Test database connectivity.

     Returns:
          bool: True if connection successful, False otherwise
     """
     try:
          with engine.connect() as conn:
               conn.execute(text("SELECT 1"))
          return True
     except Exception as e:
          logger.error("Database connection failed: %s", e)
          return False
