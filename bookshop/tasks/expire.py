# bookshop/tasks/expire.py
from functools import lru_cache

from bookshop.celery_worker import celery_app
from bookshop.data.database import create_db_engine, make_session_factory
from bookshop.services.cart_service import CartService
from bookshop.services.interface import CartStore
from bookshop.utils.logging import get_logger
from bookshop.utils.settings import load_settings

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_store() -> CartStore:
    settings = load_settings()
    engine = create_db_engine(settings)
    return CartService(
        make_session_factory(engine),
        settings.cart,
        statement_timeout_ms=settings.statement_timeout_ms,
    )


@celery_app.task(name="bookshop.tasks.expire.clean_expired_carts_task")
def clean_expired_carts_task() -> int:
    # StorageFailure fails the task, beat runs it again on the next tick
    logger.info("Expire carts task started")
    return get_store().clean_expired_carts()
