# bookshop/services/cart_service.py
from typing import List

from bookshop.data.database import SessionFactory, transaction
from bookshop.domain.errors import BookNotInCart, CartError
from bookshop.domain.schemas import BookRead, PurchaseResult
from bookshop.repos.cart_repo import CartRepo
from bookshop.services.interface import CartStore
from bookshop.services.inventory_guard import InventoryGuard
from bookshop.services.purchase_service import PurchaseCoordinator
from bookshop.utils.clock import Clock, utcnow
from bookshop.utils.logging import get_logger
from bookshop.utils.settings import CartConfig

logger = get_logger(__name__)


class CartService(CartStore):
    """
    SQL-backed cart store.
    commands (add, remove, purchase, clean) each run in their own transaction,
    the query (get) only reads
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        config: CartConfig,
        clock: Clock = utcnow,
        statement_timeout_ms: int = 0,
    ):
        self.session_factory = session_factory
        self.config = config
        self.clock = clock
        self.statement_timeout_ms = statement_timeout_ms
        self.purchaser = PurchaseCoordinator(
            session_factory,
            clock=clock,
            statement_timeout_ms=statement_timeout_ms,
        )

    def _transaction(self):
        return transaction(self.session_factory, self.statement_timeout_ms)

    #query
    def get_cart(self, user_id: int) -> List[BookRead]:
        with self._transaction() as db:
            books = CartRepo(db).get_books(user_id)
            return [BookRead.model_validate(b) for b in books]

    #commands
    def add_to_cart(self, user_id: int, book_id: int) -> None:
        """
        Use Case: add a book to the cart.

        Cart upsert, stock check (under the book row lock) and item upsert share one
        transaction, so a purchase cannot take the last unit in between.
        """
        now = self.clock()

        try:
            with self._transaction() as db:
                repo = CartRepo(db)
                cart = repo.ensure_cart(user_id, now)
                InventoryGuard(db).ensure_available(book_id)
                inserted = repo.add_or_touch_item(cart.id, book_id, now)

        except CartError as e:
            logger.warning(f"Add to cart rejected for user {user_id}: {e}")
            raise

        if inserted:
            logger.info(f"Book {book_id} added to cart of user {user_id}")
        else:
            logger.info(f"Book {book_id} already in cart of user {user_id}, timestamp refreshed")

    def remove_from_cart(self, user_id: int, book_id: int) -> None:
        now = self.clock()

        with self._transaction() as db:
            repo = CartRepo(db)
            cart = repo.get_cart_by_user(user_id, for_update=True)

            if cart is None or repo.delete_cart_item(cart.id, book_id) == 0:
                raise BookNotInCart(book_id)

            repo.touch_cart(cart, now)

        logger.info(f"Book {book_id} removed from cart of user {user_id}")

    def purchase(self, user_id: int) -> PurchaseResult:
        return self.purchaser.purchase(user_id)

    def clean_expired_carts(self) -> int:
        cutoff = self.clock() - self.config.expiry

        with self._transaction() as db:
            removed = CartRepo(db).delete_expired(cutoff)

        logger.info(f"Cleaned expired carts, carts deleted: {removed}")
        return removed
