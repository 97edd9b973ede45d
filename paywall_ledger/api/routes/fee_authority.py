from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from paywall_ledger.api.deps import get_fee_authority, require_caller
from paywall_ledger.db.session import get_db
from paywall_ledger.schemas.fee_authority import FeeAuthorityOut, FeeRateUpdate, OwnerUpdate
from paywall_ledger.services.fee_authority.service import FeeAuthorityService


router = APIRouter(prefix="/fee-authority", tags=["fee-authority"])


def _out(service: FeeAuthorityService) -> FeeAuthorityOut:
    return FeeAuthorityOut(owner=service.owner(), fee_rate_ppt=service.current_fee_rate())


@router.get("", response_model=FeeAuthorityOut)
def get_fee_authority_state(
    service: FeeAuthorityService = Depends(get_fee_authority),
) -> FeeAuthorityOut:
    return _out(service)


@router.put("/rate", response_model=FeeAuthorityOut)
def set_fee_rate(
    payload: FeeRateUpdate,
    caller: str = Depends(require_caller),
    service: FeeAuthorityService = Depends(get_fee_authority),
    db: Session = Depends(get_db),
) -> FeeAuthorityOut:
    service.set_fee_rate(caller, payload.rate)
    db.commit()
    return _out(service)


@router.put("/owner", response_model=FeeAuthorityOut)
def transfer_ownership(
    payload: OwnerUpdate,
    caller: str = Depends(require_caller),
    service: FeeAuthorityService = Depends(get_fee_authority),
    db: Session = Depends(get_db),
) -> FeeAuthorityOut:
    service.transfer_ownership(caller, payload.new_owner)
    db.commit()
    return _out(service)
