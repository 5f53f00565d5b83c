# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from storefront.api.errors import register_error_handlers
from storefront.api.routers import (
    carts,
    contact,
    customers,
    health,
    packs,
    payments,
    products,
    promotions,
    sales,
    uploads,
)
from storefront.data.database import Base, engine
from storefront.utils.logging import get_logger

# every model must be imported before create_all
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db():
    logger.info(f"Models registered in Base.metadata: {sorted(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(products.router)
    app.include_router(customers.router)
    app.include_router(carts.router)
    app.include_router(payments.router)
    app.include_router(promotions.router)
    app.include_router(packs.router)
    app.include_router(sales.router)
    app.include_router(uploads.router)
    app.include_router(contact.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
