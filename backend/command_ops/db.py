# backend/command_ops/db.py
import os
from contextlib import contextmanager
from typing import Generator, Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase, Session

from command_ops.errors import AppError, DatabaseError

# --- SQLAlchemy Base ---------------------------------------------------------
class Base(DeclarativeBase):
    pass

# --- Engine / Session --------------------------------------------------------
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql+psycopg://commandops:devpass@db:5432/commandops",
)

# sqlite needs cross-thread access: FastAPI runs sync endpoints in a threadpool
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, pool_pre_ping=True, future=True, connect_args=connect_args)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
    future=True,
)

# FastAPI dependency
def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Commit everything executed inside the block, or roll all of it back.
    Domain errors pass through untouched; anything else from the driver
    surfaces as DatabaseError.
    """
    try:
        yield db
        db.commit()
    except AppError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise DatabaseError(e) from e


# Used by /health
def healthcheck() -> dict:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok"}
