# bookshop/celery_worker.py
from celery import Celery

from bookshop.utils.logging import get_logger
from bookshop.utils.settings import load_settings

logger = get_logger(__name__)

settings = load_settings()

celery_app = Celery(
    "bookshop",
    broker=settings.broker_url,
    backend=settings.result_backend,
)

# register tasks explicitly
celery_app.conf.imports = ("bookshop.tasks.expire",)

# beat is the alternative to the in-process sweeper, deploy one of them
celery_app.conf.beat_schedule = {
    "clean-expired-carts": {
        "task": "bookshop.tasks.expire.clean_expired_carts_task",
        "schedule": settings.cart.cleanup_interval.total_seconds(),
    },
}

celery_app.conf.timezone = "UTC"

if settings.sweeper_in_process:
    logger.warning(
        "CART_SWEEPER_IN_PROCESS is enabled; set it to false for API processes "
        "when celery beat runs the cart sweep"
    )
