"""
Main FastAPI application for the content paywall ledger.
Serves health, articles, payments, withdrawals, fee authority and metrics.
"""
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from paywall_ledger.api.errors import register_error_handlers
from paywall_ledger.api.routes import articles, fee_authority, health, payments, withdrawals
from paywall_ledger.core.config import settings
from paywall_ledger.core.logging import configure_logging
from paywall_ledger.utils.metrics import router as metrics_router

configure_logging()
logger = logging.getLogger("paywall_ledger.http")


app = FastAPI(
    title="Paywall Ledger API",
    description="Paid content access, payment splits, refunds and withdrawals",
    version="1.0.0",
)

# CORS
origins = settings.cors_origins_list or ["http://localhost:3000", "http://127.0.0.1:3000"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def access_log(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "http_request",
        extra={
            "request_id": request.headers.get(settings.request_id_header),
            "path": request.url.path,
            "method": request.method,
            "status_code": response.status_code,
            "latency_ms": round((time.perf_counter() - started) * 1000, 1),
        },
    )
    return response


register_error_handlers(app)

# Routers
app.include_router(health.router, tags=["health"])
app.include_router(articles.router)
app.include_router(payments.router)
app.include_router(withdrawals.router)
app.include_router(fee_authority.router)
app.include_router(metrics_router)
