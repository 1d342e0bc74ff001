# bookshop/domain/errors.py


class CartError(Exception):
    """Domain failure the caller can show to the user (4xx)."""


class BookNotFound(CartError):
    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} not found")
        self.book_id = book_id


class BookOutOfStock(CartError):
    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} is out of stock")
        self.book_id = book_id


class BookNotInCart(CartError):
    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} not found in cart")
        self.book_id = book_id


class CartEmpty(CartError):
    def __init__(self, user_id: int):
        super().__init__("Cart is empty")
        self.user_id = user_id


class StorageFailure(Exception):
    """
    Transaction or connectivity failure.
    The message is safe to return to clients, the driver error is kept in __cause__.
    """

    def __init__(self, message: str = "Internal storage error"):
        super().__init__(message)
