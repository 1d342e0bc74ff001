# bookshop/api/dependencies.py
from fastapi import HTTPException, Request

from bookshop.domain.errors import (
    BookNotFound,
    BookNotInCart,
    BookOutOfStock,
    CartEmpty,
    CartError,
)
from bookshop.services.interface import CartStore

ERROR_STATUS = {
    BookNotFound: 404,
    BookNotInCart: 404,
    BookOutOfStock: 409,
    CartEmpty: 422,
}


def get_store(request: Request) -> CartStore:
    return request.app.state.store


def to_http(e: CartError) -> HTTPException:
    return HTTPException(status_code=ERROR_STATUS.get(type(e), 400), detail=str(e))
