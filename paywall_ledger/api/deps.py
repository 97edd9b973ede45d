"""
FastAPI dependencies: caller identity, services per request.
Аутентификация внешняя: identity вызывающего приходит в заголовке settings.caller_id_header.
"""
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from paywall_ledger.core.config import settings
from paywall_ledger.core.exceptions import Unauthorized
from paywall_ledger.db.session import get_db
from paywall_ledger.services.articles.service import ArticleService
from paywall_ledger.services.fee_authority.service import FeeAuthorityService
from paywall_ledger.services.ledger.service import LedgerService
from paywall_ledger.services.payouts.base import PayoutProvider
from paywall_ledger.services.payouts.factory import PayoutProviderFactory


def get_caller(request: Request) -> str | None:
    value = request.headers.get(settings.caller_id_header)
    value = (value or "").strip()
    return value or None


def require_caller(caller: str | None = Depends(get_caller)) -> str:
    if not caller:
        raise Unauthorized(f"{settings.caller_id_header} header is required")
    return caller


@lru_cache
def _payout_provider() -> PayoutProvider:
    return PayoutProviderFactory.create_from_settings(settings)


def get_payout_provider() -> PayoutProvider:
    return _payout_provider()


def get_article_service(db: Session = Depends(get_db)) -> ArticleService:
    return ArticleService(db)


def get_fee_authority(db: Session = Depends(get_db)) -> FeeAuthorityService:
    return FeeAuthorityService(db)


def get_ledger(
    db: Session = Depends(get_db),
    payout_provider: PayoutProvider = Depends(get_payout_provider),
) -> LedgerService:
    return LedgerService(db, fee_authority=FeeAuthorityService(db), payout_provider=payout_provider)
