# bookshop/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from bookshop.api.routers import cart, health
from bookshop.data.database import create_db_engine, init_db, make_session_factory, wait_for_db
from bookshop.services.cart_service import CartService
from bookshop.services.interface import CartStore
from bookshop.services.sweeper import ExpirationSweeper
from bookshop.utils.logging import configure_logging, get_logger
from bookshop.utils.settings import Settings, load_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting bookshop cart service...")

    engine = app.state.engine
    if engine is not None:
        logger.info("Waiting for database to be ready...")
        wait_for_db(engine)
        init_db(engine)

    sweeper = app.state.sweeper
    if sweeper is not None:
        sweeper.start()

    yield

    logger.info("Shutting down bookshop cart service...")
    if sweeper is not None:
        sweeper.stop()
    if engine is not None:
        engine.dispose()


def create_app(settings: Settings | None = None, store: CartStore | None = None) -> FastAPI:
    """
    Wires the service. Passing `store` skips the database entirely (tests, local runs).
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Bookshop Cart Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.engine = None
    app.state.session_factory = None

    if store is None:
        engine = create_db_engine(settings)
        session_factory = make_session_factory(engine)
        store = CartService(
            session_factory,
            settings.cart,
            statement_timeout_ms=settings.statement_timeout_ms,
        )
        app.state.engine = engine
        app.state.session_factory = session_factory

    app.state.store = store
    app.state.sweeper = ExpirationSweeper(store, settings.cart) if settings.sweeper_in_process else None

    # Include routers
    app.include_router(health.router)
    app.include_router(cart.router)

    return app


if __name__ == "__main__":
    uvicorn.run("bookshop.main:create_app", factory=True, host="0.0.0.0", port=8000)
