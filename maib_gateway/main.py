"""
MAIB Gateway — off-site redirect payments through MAIB ECOMM.

Registers transactions, reconciles the customer's return from the bank
page and lets the merchant capture, void and refund payments.

Start the server:
    uvicorn maib_gateway.main:app --reload

Without bank certificates, set MAIB_USE_MOCK=true to answer from memory.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from maib_gateway.api.checkout import router as checkout_router
from maib_gateway.api.health import router as health_router
from maib_gateway.api.payments import router as payments_router
from maib_gateway.config import settings
from maib_gateway.database import close_db, init_db
from maib_gateway.engine.errors import MaibError

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger("maib_gateway")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, release connections on shutdown."""
    await init_db()
    yield
    await close_db()


app = FastAPI(
    title="MAIB Gateway",
    description=(
        "Off-site redirect payment gateway for MAIB. Registers transactions, "
        "reconciles return callbacks against local payments and issues capture, "
        "void and refund operations with an audit trail."
    ),
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(MaibError)
async def maib_error_handler(request: Request, exc: MaibError):
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": str(exc), "error": type(exc).__name__, "payload": exc.payload},
    )


app.include_router(health_router)
app.include_router(checkout_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
