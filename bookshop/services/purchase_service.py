# bookshop/services/purchase_service.py
from bookshop.data.database import SessionFactory, transaction
from bookshop.domain.errors import CartEmpty, CartError
from bookshop.domain.schemas import PurchaseResult
from bookshop.repos.cart_repo import CartRepo
from bookshop.services.inventory_guard import InventoryGuard
from bookshop.utils.clock import Clock, utcnow
from bookshop.utils.logging import get_logger

logger = get_logger(__name__)


class PurchaseCoordinator:
    """
    Turns "buy everything in this user's cart" into one all-or-nothing transaction.
    Kept apart from CartService so the stock-touching path stays in one place.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        clock: Clock = utcnow,
        statement_timeout_ms: int = 0,
    ):
        self.session_factory = session_factory
        self.clock = clock
        self.statement_timeout_ms = statement_timeout_ms

    def purchase(self, user_id: int) -> PurchaseResult:
        """
        Use Case: purchase the cart.

        1. resolve (or create) the cart and refresh its timestamp
        2. lock the cart items, fail with CartEmpty if there are none
        3. take one unit of every book through the inventory guard
        4. delete the items and the cart

        Any failure rolls back everything, the cart and the stock stay untouched.
        """
        now = self.clock()

        try:
            with transaction(self.session_factory, self.statement_timeout_ms) as db:
                carts = CartRepo(db)
                cart = carts.ensure_cart(user_id, now)

                book_ids = carts.lock_cart_book_ids(cart.id)
                if not book_ids:
                    raise CartEmpty(user_id)

                guard = InventoryGuard(db)
                remaining = {}
                for book_id in book_ids:
                    remaining[book_id] = guard.take_one(book_id)

                carts.delete_cart(cart.id)

        except CartError as e:
            logger.warning(f"Purchase rejected for user {user_id}: {e}")
            raise

        logger.info(f"Purchase completed for user {user_id}, books count: {len(book_ids)}")

        return PurchaseResult(
            user_id=user_id,
            book_ids=book_ids,
            remaining_stock=remaining,
        )
