from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from paywall_ledger.api.deps import get_ledger, require_caller
from paywall_ledger.db.session import get_db
from paywall_ledger.schemas.payments import PaymentCreate, PaymentOut
from paywall_ledger.services.ledger.service import LedgerService


router = APIRouter(tags=["payments"])


@router.post("/articles/{article_id}/payments", response_model=PaymentOut, status_code=201)
def pay_for_article(
    article_id: int,
    payload: PaymentCreate,
    caller: str = Depends(require_caller),
    ledger: LedgerService = Depends(get_ledger),
    db: Session = Depends(get_db),
) -> PaymentOut:
    payment = ledger.pay(caller, article_id, payload.amount)
    db.commit()
    return PaymentOut.model_validate(payment)


@router.post("/articles/{article_id}/refund", response_model=PaymentOut)
def refund_article(
    article_id: int,
    caller: str = Depends(require_caller),
    ledger: LedgerService = Depends(get_ledger),
    db: Session = Depends(get_db),
) -> PaymentOut:
    payment = ledger.refund(caller, article_id)
    db.commit()
    return PaymentOut.model_validate(payment)


@router.get("/payments", response_model=list[PaymentOut])
def list_my_payments(
    article_id: int | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    caller: str = Depends(require_caller),
    ledger: LedgerService = Depends(get_ledger),
) -> list[PaymentOut]:
    payments = ledger.list_payments(payer=caller, article_id=article_id, limit=limit)
    return [PaymentOut.model_validate(p) for p in payments]
