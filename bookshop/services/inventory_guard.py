# bookshop/services/inventory_guard.py
from sqlalchemy.orm import Session

from bookshop.domain.errors import BookNotFound, BookOutOfStock
from bookshop.repos.book_repo import BookRepo


class InventoryGuard:
    """
    The only code path allowed to decrement book stock.

    Every check runs after the book row is locked (SELECT ... FOR UPDATE), so concurrent
    purchasers of the same book queue on the lock: the first one consumes the last unit,
    the others re-read the committed stock and fail with BookOutOfStock.
    """

    def __init__(self, db: Session):
        self.books = BookRepo(db)

    def ensure_available(self, book_id: int) -> int:
        """Lock the book row and return its stock, which is guaranteed to be > 0."""
        stock = self.books.get_stock_for_update(book_id)

        if stock is None:
            raise BookNotFound(book_id)

        if stock <= 0:
            raise BookOutOfStock(book_id)

        return stock

    def take_one(self, book_id: int) -> int:
        """Atomically consume one unit. Returns the remaining stock."""
        stock = self.ensure_available(book_id)

        # guarded update, 0 rows means the stock was already gone
        if not self.books.decrement_stock(book_id):
            raise BookOutOfStock(book_id)

        return stock - 1
