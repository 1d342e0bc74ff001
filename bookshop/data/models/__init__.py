#import all models so SQLAlchemy registers them in Base.metadata

from bookshop.data.models.book import BookModel
from bookshop.data.models.cart import CartModel
from bookshop.data.models.cart_item import CartItemModel

__all__ = ["BookModel", "CartModel", "CartItemModel"]
