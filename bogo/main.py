# bogo/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from bogo.data.database import Base, engine
from bogo.api.routers import carts, coupons, orders, health
from bogo.utils.logging import get_logger
import uvicorn

logger = get_logger(__name__)

# register all models before create_all
import bogo.data.models  # noqa: F401


def init_db():
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="BOGO Cart Service",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(coupons.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
