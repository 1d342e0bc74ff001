from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from bookshop.data.database import create_db_engine, init_db, make_session_factory
from bookshop.data.models import BookModel, CartItemModel, CartModel
from bookshop.domain.schemas import BookRead
from bookshop.services.cart_service import CartService
from bookshop.services.memory_store import InMemoryCartStore
from bookshop.utils.settings import CartConfig, Settings


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive timestamps, everything is stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class DbInspector:
    """Reads state through fresh sessions, outside the code under test."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def add_book(self, stock: int = 1, **fields) -> int:
        data = {"title": "Book", "author": "Author", "year": 2020, "price": 1000, "stock": stock}
        data.update(fields)
        with self.session_factory() as db:
            book = BookModel(**data)
            db.add(book)
            db.commit()
            return book.id

    def stock(self, book_id: int) -> int:
        with self.session_factory() as db:
            return db.execute(select(BookModel.stock).where(BookModel.id == book_id)).scalar_one()

    def cart(self, user_id: int) -> CartModel | None:
        with self.session_factory() as db:
            return db.execute(select(CartModel).where(CartModel.user_id == user_id)).scalar_one_or_none()

    def items(self, user_id: int) -> list:
        with self.session_factory() as db:
            return list(
                db.execute(
                    select(CartItemModel)
                    .join(CartModel, CartModel.id == CartItemModel.cart_id)
                    .where(CartModel.user_id == user_id)
                    .order_by(CartItemModel.book_id)
                ).scalars().all()
            )

    def cart_updated_at(self, user_id: int) -> datetime:
        return as_utc(self.cart(user_id).updated_at)

    def item_updated_at(self, user_id: int, book_id: int) -> datetime:
        item = next(i for i in self.items(user_id) if i.book_id == book_id)
        return as_utc(item.updated_at)

    def count(self, model) -> int:
        with self.session_factory() as db:
            return db.execute(select(func.count()).select_from(model)).scalar_one()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def cart_config():
    return CartConfig(cleanup_interval=timedelta(minutes=1), expiry=timedelta(minutes=30))


@pytest.fixture
def engine():
    engine = create_db_engine(Settings(database_url="sqlite://"))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db_state(session_factory):
    return DbInspector(session_factory)


@pytest.fixture
def service(session_factory, cart_config, clock):
    return CartService(session_factory, cart_config, clock=clock)


@pytest.fixture
def memory_store(cart_config, clock):
    return InMemoryCartStore(cart_config, clock=clock)


@pytest.fixture
def put_book(memory_store):
    """Puts a book with the given stock into the memory store."""

    def _put(book_id: int, stock: int) -> int:
        memory_store.put_book(
            BookRead(id=book_id, title=f"Book {book_id}", author="Author", year=2020, price=1000, stock=stock)
        )
        return book_id

    return _put
