# orderbroker/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
import uvicorn

from orderbroker.data.database import Base, engine
from orderbroker.api.routers import health, invoices, orders, tracking, users
from orderbroker.services.notification_service import NotificationQueue, build_notification_queue
from orderbroker.utils.logging import get_logger

# import modeli przed create_all, zeby byly w Base.metadata
import orderbroker.data.models  # noqa: F401

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")

    queue = app.state.notification_queue
    queue.start()
    try:
        yield
    finally:
        queue.stop()


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # zle id, zle liczby, nieznany status -> 400 jak reszta bledow klienta
    return JSONResponse(
        status_code=400,
        content={"detail": jsonable_encoder(exc.errors())},
    )


def create_app(notification_queue: NotificationQueue | None = None) -> FastAPI:
    app = FastAPI(
        title="Order Broker",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.notification_queue = notification_queue or build_notification_queue()

    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Include routers
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(orders.router)
    app.include_router(tracking.router)
    app.include_router(invoices.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
