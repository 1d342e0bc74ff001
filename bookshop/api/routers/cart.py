# bookshop/api/routers/cart.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from bookshop.api.dependencies import get_store, to_http
from bookshop.domain.errors import CartError, StorageFailure
from bookshop.domain.schemas import BookRead, CartItemIn, PurchaseResult
from bookshop.services.interface import CartStore

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=List[BookRead])
def get_cart(
    user_id: int = Query(..., gt=0),
    store: CartStore = Depends(get_store),
):
    try:
        return store.get_cart(user_id)
    except StorageFailure as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/add", status_code=202)
def add_to_cart(
    payload: CartItemIn,
    user_id: int = Query(..., gt=0),
    store: CartStore = Depends(get_store),
):
    try:
        store.add_to_cart(user_id, payload.book_id)
    except CartError as e:
        raise to_http(e)
    except StorageFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "accepted"}


@router.post("/remove", status_code=202)
def remove_from_cart(
    payload: CartItemIn,
    user_id: int = Query(..., gt=0),
    store: CartStore = Depends(get_store),
):
    try:
        store.remove_from_cart(user_id, payload.book_id)
    except CartError as e:
        raise to_http(e)
    except StorageFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "accepted"}


@router.post("/purchase", response_model=PurchaseResult, status_code=202)
def purchase(
    user_id: int = Query(..., gt=0),
    store: CartStore = Depends(get_store),
):
    """
    Buys every book in the cart or nothing.
    409 when any book ran out, 422 for an empty cart.
    """
    try:
        return store.purchase(user_id)
    except CartError as e:
        raise to_http(e)
    except StorageFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
