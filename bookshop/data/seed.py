# bookshop/data/seed.py
from sqlalchemy import select

from bookshop.data.database import SessionFactory, create_db_engine, init_db, make_session_factory
from bookshop.data.models import BookModel
from bookshop.utils.logging import get_logger
from bookshop.utils.settings import load_settings

logger = get_logger(__name__)

DEMO_BOOKS = [
    {"title": "The Pragmatic Programmer", "author": "Andrew Hunt", "year": 1999, "price": 3999, "stock": 5, "category_id": 1},
    {"title": "Designing Data-Intensive Applications", "author": "Martin Kleppmann", "year": 2017, "price": 4599, "stock": 3, "category_id": 1},
    {"title": "Dune", "author": "Frank Herbert", "year": 1965, "price": 1299, "stock": 1, "category_id": 2},
]


def seed_books(session_factory: SessionFactory) -> int:
    db = session_factory()
    try:
        # only seed if empty
        if db.execute(select(BookModel.id).limit(1)).first():
            return 0
        db.add_all([BookModel(**data) for data in DEMO_BOOKS])
        db.commit()
        logger.info(f"Seeded {len(DEMO_BOOKS)} books")
        return len(DEMO_BOOKS)
    finally:
        db.close()


if __name__ == "__main__":
    engine = create_db_engine(load_settings())
    init_db(engine)
    seed_books(make_session_factory(engine))
