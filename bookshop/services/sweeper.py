# bookshop/services/sweeper.py
import threading

from bookshop.domain.errors import StorageFailure
from bookshop.services.interface import CartStore
from bookshop.utils.logging import get_logger
from bookshop.utils.settings import CartConfig

logger = get_logger(__name__)


class ExpirationSweeper:
    """
    Repeating cart cleanup bound to an explicit stop signal.

    The worker waits on a threading.Event between sweeps, so stop() wakes it immediately.
    A sweep that is already running finishes (commit or rollback) before stop() returns.
    """

    def __init__(self, store: CartStore, config: CartConfig):
        self.store = store
        self.interval = config.cleanup_interval.total_seconds()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> int:
        """One sweep. Storage errors are logged and the next tick retries."""
        logger.info("Cleaning carts")
        try:
            return self.store.clean_expired_carts()
        except StorageFailure as e:
            logger.error(f"Cart sweep failed, will retry on next tick: {e}")
            return 0

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            try:
                self.run_once()
            except Exception:
                logger.exception("Unexpected error in cart sweep, will retry on next tick")

    def start(self) -> None:
        if self.running:
            return

        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="cart-sweeper", daemon=True)
        self._thread.start()
        logger.info(f"Cart cleaner job started, interval seconds: {self.interval}")

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()

        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

        logger.info("Cart cleaner job stopped")
