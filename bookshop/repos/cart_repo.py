# bookshop/repos/cart_repo.py
from datetime import datetime
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from bookshop.data.models.book import BookModel
from bookshop.data.models.cart import CartModel
from bookshop.data.models.cart_item import CartItemModel
from bookshop.utils.logging import get_logger

logger = get_logger(__name__)


class CartRepo:
    """Row access for carts and cart items. Never commits, the caller owns the transaction."""

    def __init__(self, db: Session):
        self.db = db

    def get_cart_by_user(self, user_id: int, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def _insert(self):
        if self.db.get_bind().dialect.name == "postgresql":
            return postgresql.insert
        return sqlite.insert

    def ensure_cart(self, user_id: int, now: datetime) -> CartModel:
        """Lock the user's cart (creating it if missing) and refresh its timestamp."""
        # a concurrent first add for the same user blocks on the unique index, then finds the row
        stmt = (
            self._insert()(CartModel)
            .values(user_id=user_id, updated_at=now)
            .on_conflict_do_nothing(index_elements=[CartModel.user_id])
        )
        if self.db.execute(stmt).rowcount == 1:
            logger.info(f"Created cart for user {user_id}")

        cart = self.get_cart_by_user(user_id, for_update=True)
        cart.updated_at = now
        self.db.flush()

        return cart

    def touch_cart(self, cart: CartModel, now: datetime) -> None:
        cart.updated_at = now
        self.db.flush()

    def get_books(self, user_id: int) -> List[BookModel]:
        stmt = (
            select(BookModel)
            .join(CartItemModel, CartItemModel.book_id == BookModel.id)
            .join(CartModel, CartModel.id == CartItemModel.cart_id)
            .where(CartModel.user_id == user_id)
            .order_by(BookModel.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_cart_item(self, cart_id: int, book_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.book_id == book_id,
            )
        ).scalar_one_or_none()

    def add_or_touch_item(self, cart_id: int, book_id: int, now: datetime) -> bool:
        """Insert the item, or refresh its timestamp if the book is already there. True if inserted."""
        item = self.get_cart_item(cart_id, book_id)

        if item is not None:
            item.updated_at = now
            self.db.flush()
            return False

        self.db.add(CartItemModel(cart_id=cart_id, book_id=book_id, updated_at=now))
        self.db.flush()
        return True

    def delete_cart_item(self, cart_id: int, book_id: int) -> int:
        result = self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id, CartItemModel.book_id == book_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def lock_cart_book_ids(self, cart_id: int) -> List[int]:
        # ascending book id: deterministic per cart and a common lock order across carts
        stmt = (
            select(CartItemModel.book_id)
            .where(CartItemModel.cart_id == cart_id)
            .order_by(CartItemModel.book_id)
            .with_for_update()
        )
        return list(self.db.execute(stmt).scalars().all())

    def delete_cart(self, cart_id: int) -> None:
        self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        self.db.execute(
            delete(CartModel)
            .where(CartModel.id == cart_id)
            .execution_options(synchronize_session=False)
        )

    def delete_expired(self, cutoff: datetime) -> int:
        """Remove carts idle since before `cutoff`, items first. Returns the number of carts removed."""
        # carts locked by an in-flight add/remove/purchase are active, leave them for the next sweep
        cart_ids = list(
            self.db.execute(
                select(CartModel.id)
                .where(CartModel.updated_at < cutoff)
                .with_for_update(skip_locked=True)
            ).scalars().all()
        )

        if not cart_ids:
            return 0

        self.db.execute(
            delete(CartItemModel)
            .where(CartItemModel.cart_id.in_(cart_ids))
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(
            delete(CartModel)
            .where(CartModel.id.in_(cart_ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
