from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from paywall_ledger.api.deps import get_caller, get_ledger, require_caller
from paywall_ledger.db.session import get_db
from paywall_ledger.schemas.payments import BalancesOut, ReconcileOut, WithdrawalOut
from paywall_ledger.services.ledger.service import LedgerService


router = APIRouter(tags=["withdrawals"])


@router.post("/withdrawals/platform-fees", response_model=WithdrawalOut)
def withdraw_platform_fees(
    caller: str = Depends(require_caller),
    ledger: LedgerService = Depends(get_ledger),
    db: Session = Depends(get_db),
) -> WithdrawalOut:
    withdrawal = ledger.withdraw_platform_fees(caller)
    db.commit()
    return WithdrawalOut.model_validate(withdrawal)


@router.post("/withdrawals/earnings", response_model=WithdrawalOut)
def withdraw_earnings(
    caller: str = Depends(require_caller),
    ledger: LedgerService = Depends(get_ledger),
    db: Session = Depends(get_db),
) -> WithdrawalOut:
    withdrawal = ledger.withdraw_earnings(caller)
    db.commit()
    return WithdrawalOut.model_validate(withdrawal)


@router.get("/balances", response_model=BalancesOut)
def balances(
    caller: str | None = Depends(get_caller),
    ledger: LedgerService = Depends(get_ledger),
) -> BalancesOut:
    return BalancesOut(**ledger.get_balances(author=caller))


@router.get("/balances/reconcile", response_model=ReconcileOut)
def reconcile(ledger: LedgerService = Depends(get_ledger)) -> ReconcileOut:
    return ReconcileOut(**ledger.reconcile())
