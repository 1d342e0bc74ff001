import threading
import typing
from concurrent.futures import ThreadPoolExecutor

import pytest

from bookshop.domain.errors import BookNotFound, BookNotInCart, BookOutOfStock, CartEmpty
from bookshop.services.memory_store import InMemoryCartStore


def purchase_concurrently(store, user_ids):
    """Fires every purchase at once, returns {user_id: None | exception}."""
    barrier = threading.Barrier(len(user_ids))

    def attempt(user_id):
        barrier.wait()
        try:
            store.purchase(user_id)
            return user_id, None
        except Exception as e:
            return user_id, e

    with ThreadPoolExecutor(max_workers=len(user_ids)) as pool:
        return dict(pool.map(attempt, user_ids))


def test_add_and_get(memory_store, put_book):
    put_book(2, stock=1)
    put_book(1, stock=1)

    memory_store.add_to_cart(7, 2)
    memory_store.add_to_cart(7, 1)

    assert [b.id for b in memory_store.get_cart(7)] == [1, 2]
    assert memory_store.get_cart(8) == []


def test_add_errors(memory_store, put_book):
    put_book(1, stock=0)

    with pytest.raises(BookNotFound):
        memory_store.add_to_cart(7, 99)
    with pytest.raises(BookOutOfStock):
        memory_store.add_to_cart(7, 1)

    assert memory_store.get_cart(7) == []


def test_remove_then_remove_fails(memory_store, put_book):
    put_book(1, stock=1)
    memory_store.add_to_cart(7, 1)

    memory_store.remove_from_cart(7, 1)
    with pytest.raises(BookNotInCart):
        memory_store.remove_from_cart(7, 1)


def test_empty_purchase(memory_store):
    with pytest.raises(CartEmpty):
        memory_store.purchase(7)


def test_all_or_nothing_purchase(memory_store, put_book):
    put_book(1, stock=5)
    put_book(2, stock=1)
    memory_store.add_to_cart(7, 1)
    memory_store.add_to_cart(7, 2)
    memory_store.add_to_cart(8, 2)
    memory_store.purchase(8)

    with pytest.raises(BookOutOfStock):
        memory_store.purchase(7)

    assert memory_store.stock_of(1) == 5
    assert memory_store.stock_of(2) == 0
    assert [b.id for b in memory_store.get_cart(7)] == [1, 2]


def test_expiry(memory_store, put_book, clock):
    put_book(1, stock=1)
    memory_store.add_to_cart(7, 1)
    clock.advance(minutes=20)
    memory_store.add_to_cart(8, 1)
    clock.advance(minutes=15)

    assert memory_store.clean_expired_carts() == 1
    assert memory_store.get_cart(7) == []
    assert [b.id for b in memory_store.get_cart(8)] == [1]
    assert memory_store.clean_expired_carts() == 0


def test_two_units_five_purchasers(memory_store, put_book):
    put_book(1, stock=2)
    users = [1, 2, 3, 4, 5]
    for user_id in users:
        memory_store.add_to_cart(user_id, 1)

    results = purchase_concurrently(memory_store, users)

    successes = [u for u, err in results.items() if err is None]
    failures = [err for err in results.values() if err is not None]
    assert len(successes) == 2
    assert len(failures) == 3
    assert all(isinstance(err, BookOutOfStock) for err in failures)
    assert memory_store.stock_of(1) == 0
    # losers keep their carts
    for user_id in set(users) - set(successes):
        assert [b.id for b in memory_store.get_cart(user_id)] == [1]


@pytest.mark.parametrize("stock,attempts", [(0, 3), (3, 3), (4, 10), (10, 4)])
def test_no_oversell(memory_store, put_book, stock, attempts):
    put_book(1, stock=max(stock, 1))
    users = list(range(1, attempts + 1))
    for user_id in users:
        memory_store.add_to_cart(user_id, 1)
    if stock == 0:
        # drain the single unit used to allow adding
        memory_store.add_to_cart(999, 1)
        memory_store.purchase(999)

    results = purchase_concurrently(memory_store, users)

    successes = sum(1 for err in results.values() if err is None)
    assert successes == min(stock, attempts)
    assert memory_store.stock_of(1) == stock - successes


def test_lock_annotations_resolve():
    # threading.Lock is a factory function before 3.13
    hints = typing.get_type_hints(InMemoryCartStore._book_lock)

    assert hints["return"] == typing.Optional[threading.Lock]


def test_unknown_book_has_no_lock(memory_store, put_book):
    put_book(1, stock=1)

    assert memory_store._book_lock(1) is not None
    assert memory_store._book_lock(2) is None
