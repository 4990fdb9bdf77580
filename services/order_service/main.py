import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config.database import engine, Base
from shared.config.upstream import create_http_client
from shared.observability import setup_observability
from .errors import (
    OrderError,
    http_error_handler,
    order_error_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from .router import router, public_router
from .models import Order, OrderItem # Import to register with Base

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
OTEL_ENABLED = os.getenv("OTEL_ENABLED", "true").lower() == "true"
OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT", "http://localhost:4317")

order_app = FastAPI(title="Order Service", version="1.0.0")

# --- OBSERVABILITY BOOTSTRAP ---
setup_observability(
    order_app,
    "order_service",
    log_level=LOG_LEVEL,
    tracing_enabled=OTEL_ENABLED,
    otlp_endpoint=OTLP_ENDPOINT,
)

# --- ERROR BODIES: always {"error": "..."} ---
order_app.add_exception_handler(OrderError, order_error_handler)
order_app.add_exception_handler(RequestValidationError, validation_error_handler)
order_app.add_exception_handler(StarletteHTTPException, http_error_handler)
order_app.add_exception_handler(Exception, unhandled_error_handler)

order_app.include_router(public_router)
order_app.include_router(router)

@order_app.on_event("startup")
async def startup_event():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    order_app.state.http_client = create_http_client()

@order_app.on_event("shutdown")
async def shutdown_event():
    await order_app.state.http_client.aclose()
    await engine.dispose()
