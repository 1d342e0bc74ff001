# bookshop/repos/book_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from bookshop.data.models.book import BookModel


class BookRepo:
    """
    Stock access for the catalog's books table.
    Both calls run on the caller's session, so they join its transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_stock_for_update(self, book_id: int) -> int | None:
        # SELECT stock FROM books WHERE id = :id FOR UPDATE
        return self.db.execute(
            select(BookModel.stock).where(BookModel.id == book_id).with_for_update()
        ).scalar_one_or_none()

    def decrement_stock(self, book_id: int) -> bool:
        result = self.db.execute(
            update(BookModel)
            .where(BookModel.id == book_id, BookModel.stock > 0)
            .values(stock=BookModel.stock - 1)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
