# bookshop/services/interface.py
from abc import ABC, abstractmethod
from typing import List

from bookshop.domain.schemas import BookRead, PurchaseResult


class CartStore(ABC):
    """Operations the HTTP layer and the sweeper need from cart storage."""

    @abstractmethod
    def get_cart(self, user_id: int) -> List[BookRead]:
        ...

    @abstractmethod
    def add_to_cart(self, user_id: int, book_id: int) -> None:
        ...

    @abstractmethod
    def remove_from_cart(self, user_id: int, book_id: int) -> None:
        ...

    @abstractmethod
    def purchase(self, user_id: int) -> PurchaseResult:
        ...

    @abstractmethod
    def clean_expired_carts(self) -> int:
        """Delete carts idle past the expiry window. Returns how many were removed."""
