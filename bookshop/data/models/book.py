#bookshop/data/models/book.py
from sqlalchemy import CheckConstraint, Column, Integer, String

from bookshop.data.database import Base


class BookModel(Base):
    """Catalog row. Only the inventory guard may write `stock`."""

    __tablename__ = "books"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    year = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False, default=0)  # minor units
    stock = Column(Integer, nullable=False, default=0)
    category_id = Column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_books_stock_nonneg"),
        CheckConstraint("price >= 0", name="ck_books_price_nonneg"),
    )
