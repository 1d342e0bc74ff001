# bookshop/data/database.py
from contextlib import contextmanager
from typing import Callable, Iterator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from bookshop.domain.errors import StorageFailure
from bookshop.utils.logging import get_logger
from bookshop.utils.retry import db_retry
from bookshop.utils.settings import Settings

logger = get_logger(__name__)

Base = declarative_base()

SessionFactory = Callable[[], Session]


def create_db_engine(settings: Settings) -> Engine:
    url = settings.database_url

    if url.startswith("sqlite"):
        # single shared connection so an in-memory database survives between sessions
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def transaction(session_factory: SessionFactory, statement_timeout_ms: int = 0) -> Iterator[Session]:
    """
    Scoped transaction: commit only when the block finishes, rollback on any error.

    SQLAlchemy errors (including a failed commit or an expired deadline) are logged
    and re-raised as StorageFailure, domain errors pass through unchanged.
    """
    db = session_factory()
    try:
        if statement_timeout_ms and db.get_bind().dialect.name == "postgresql":
            # transaction-local, reset by commit/rollback
            db.execute(
                text("SELECT set_config('statement_timeout', :ms, true)"),
                {"ms": str(statement_timeout_ms)},
            )
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction rolled back after storage error: {e}")
        raise StorageFailure() from e
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@db_retry()
def wait_for_db(engine: Engine) -> None:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection successful")


def check_db(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database check failed: {e}")
        return False


def init_db(engine: Engine) -> None:
    # register every model in Base.metadata before create_all
    from bookshop.data import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Database tables ready: {sorted(Base.metadata.tables.keys())}")
