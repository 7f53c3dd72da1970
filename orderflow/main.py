# orderflow/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from orderflow.api.routers import checkout, discounts, health, orders, payments, shipping, webhooks
from orderflow.data import models  # noqa: F401  registers every table on Base.metadata
from orderflow.data.database import Base, engine
from orderflow.utils.logging import RequestLoggingMiddleware, get_logger, setup_logging
from orderflow.utils.settings import SERVICE_NAME

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting {SERVICE_NAME}, tables: {sorted(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    yield
    logger.info(f"Shutting down {SERVICE_NAME}")


async def validation_error_handler(request: Request, exc: RequestValidationError):
    # malformed request bodies are plain 400s, like every other validation failure
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:])
    message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    return JSONResponse(status_code=400, content={"detail": message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Orderflow",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(health.router)
    app.include_router(orders.router)
    app.include_router(payments.router)
    app.include_router(checkout.router)
    app.include_router(webhooks.router)
    app.include_router(discounts.router)
    app.include_router(shipping.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
