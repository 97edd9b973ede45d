from fastapi import APIRouter, Depends, Response
import redis
from sqlalchemy import text
from sqlalchemy.orm import Session

from paywall_ledger.api.deps import get_payout_provider
from paywall_ledger.core.config import settings
from paywall_ledger.db.session import get_db
from paywall_ledger.services.payouts.base import PayoutProvider


router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness check - always returns 200 if app is running."""
    return {"status": "ok"}


@router.get("/ready")
def readiness(
    response: Response,
    db: Session = Depends(get_db),
    payout_provider: PayoutProvider = Depends(get_payout_provider),
) -> dict:
    """
    Readiness check - 503, пока ledger не может провести вывод средств:
    нет базы, нет Redis со состоянием circuit breaker или не настроен payout-провайдер.
    """
    checks: dict[str, str] = {}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "ok"

        if settings.cb_storage == "redis":
            redis.Redis.from_url(settings.redis_url).ping()
            checks["redis"] = "ok"
    except Exception as e:
        response.status_code = 503
        return {"status": "not_ready", "error": str(e), "checks": checks}

    if not payout_provider.is_available():
        checks["payout_provider"] = "not_configured"
        response.status_code = 503
        return {
            "status": "not_ready",
            "error": f"payout provider '{payout_provider.name}' is not configured",
            "checks": checks,
        }
    checks["payout_provider"] = payout_provider.name

    return {"status": "ready", "checks": checks}
