# bookshop/services/memory_store.py
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from bookshop.domain.errors import BookNotFound, BookNotInCart, BookOutOfStock, CartEmpty
from bookshop.domain.schemas import BookRead, PurchaseResult
from bookshop.services.interface import CartStore
from bookshop.utils.clock import Clock, utcnow
from bookshop.utils.logging import get_logger
from bookshop.utils.settings import CartConfig

logger = get_logger(__name__)


@dataclass
class _Cart:
    updated_at: datetime
    items: Dict[int, datetime] = field(default_factory=dict)


class InMemoryCartStore(CartStore):
    """
    Process-local cart store for tests and local runs.

    Per-user and per-book locks stand in for row locks: a purchase holds its user lock
    and then the locks of its books in ascending id order, checks every book and only
    then decrements, so a failed purchase changes nothing.
    """

    def __init__(self, config: CartConfig, clock: Clock = utcnow):
        self.config = config
        self.clock = clock
        self._books: Dict[int, BookRead] = {}
        self._carts: Dict[int, _Cart] = {}
        self._registry = threading.Lock()
        self._user_locks: Dict[int, threading.Lock] = {}
        self._book_locks: Dict[int, threading.Lock] = {}

    #catalog side, not part of CartStore
    def put_book(self, book: BookRead) -> None:
        with self._registry:
            self._books[book.id] = book
            self._book_locks.setdefault(book.id, threading.Lock())

    def stock_of(self, book_id: int) -> int:
        return self._books[book_id].stock

    def _user_lock(self, user_id: int) -> threading.Lock:
        with self._registry:
            return self._user_locks.setdefault(user_id, threading.Lock())

    def _book_lock(self, book_id: int) -> Optional[threading.Lock]:
        with self._registry:
            return self._book_locks.get(book_id)

    def get_cart(self, user_id: int) -> List[BookRead]:
        with self._user_lock(user_id):
            cart = self._carts.get(user_id)
            book_ids = sorted(cart.items) if cart else []
        return [self._books[book_id].model_copy() for book_id in book_ids if book_id in self._books]

    def add_to_cart(self, user_id: int, book_id: int) -> None:
        now = self.clock()

        with self._user_lock(user_id):
            book_lock = self._book_lock(book_id)
            if book_lock is None:
                raise BookNotFound(book_id)

            with book_lock:
                if self._books[book_id].stock <= 0:
                    raise BookOutOfStock(book_id)

                with self._registry:
                    cart = self._carts.setdefault(user_id, _Cart(updated_at=now))
                cart.updated_at = now
                cart.items[book_id] = now

        logger.info(f"Book {book_id} added to cart of user {user_id}")

    def remove_from_cart(self, user_id: int, book_id: int) -> None:
        now = self.clock()

        with self._user_lock(user_id):
            cart = self._carts.get(user_id)
            if cart is None or book_id not in cart.items:
                raise BookNotInCart(book_id)

            del cart.items[book_id]
            cart.updated_at = now

        logger.info(f"Book {book_id} removed from cart of user {user_id}")

    def purchase(self, user_id: int) -> PurchaseResult:
        # a failed purchase must leave the cart as it was, so nothing is written before the checks
        with self._user_lock(user_id):
            cart = self._carts.get(user_id)

            book_ids = sorted(cart.items) if cart else []
            if not book_ids:
                raise CartEmpty(user_id)

            locks = []
            for book_id in book_ids:
                lock = self._book_lock(book_id)
                if lock is None:
                    raise BookNotFound(book_id)
                locks.append(lock)

            for lock in locks:
                lock.acquire()
            try:
                for book_id in book_ids:
                    if self._books[book_id].stock <= 0:
                        raise BookOutOfStock(book_id)

                remaining = {}
                for book_id in book_ids:
                    book = self._books[book_id]
                    self._books[book_id] = book.model_copy(update={"stock": book.stock - 1})
                    remaining[book_id] = book.stock - 1
            finally:
                for lock in reversed(locks):
                    lock.release()

            with self._registry:
                del self._carts[user_id]

        logger.info(f"Purchase completed for user {user_id}, books count: {len(book_ids)}")
        return PurchaseResult(user_id=user_id, book_ids=book_ids, remaining_stock=remaining)

    def clean_expired_carts(self) -> int:
        cutoff = self.clock() - self.config.expiry

        with self._registry:
            candidates = [user_id for user_id, cart in self._carts.items() if cart.updated_at < cutoff]

        removed = 0
        for user_id in candidates:
            lock = self._user_lock(user_id)
            # busy carts are active, skip them like a locked row
            if not lock.acquire(blocking=False):
                continue
            try:
                with self._registry:
                    cart = self._carts.get(user_id)
                    if cart is not None and cart.updated_at < cutoff:
                        del self._carts[user_id]
                        removed += 1
            finally:
                lock.release()

        logger.info(f"Cleaned expired carts, carts deleted: {removed}")
        return removed
