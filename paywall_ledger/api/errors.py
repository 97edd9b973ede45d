import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from paywall_ledger.core.exceptions import LedgerError
from paywall_ledger.utils.metrics import ledger_rejections_total

logger = logging.getLogger(__name__)


async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    ledger_rejections_total.labels(code=exc.code).inc()
    logger.info(
        "ledger_rejected",
        extra={
            "code": exc.code,
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
        },
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, ledger_error_handler)
