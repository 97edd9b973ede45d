"""
FeeAuthorityService — владелец платформы и ставка комиссии (parts-per-thousand, 0..1000).

Ledger читает ставку один раз в момент оплаты; последующие изменения ставки
не затрагивают уже записанные сплиты.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from paywall_ledger.core.config import settings
from paywall_ledger.core.exceptions import InvalidParameter, Unauthorized
from paywall_ledger.models.fee_authority import FEE_AUTHORITY_ID, FeeAuthority
from paywall_ledger.services.audit.service import AuditService
from paywall_ledger.utils.identity import normalize_identity

logger = logging.getLogger(__name__)

MAX_FEE_RATE_PPT = 1000


class FeeAuthorityService:
    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def current_fee_rate(self) -> int:
        return self._get().fee_rate_ppt

    def owner(self) -> str:
        return self._get().owner

    # ------------------------------------------------------------------
    # Mutations (только текущий владелец)
    # ------------------------------------------------------------------

    def set_fee_rate(self, caller: str, new_rate: int) -> int:
        authority = self._get(for_update=True)
        self._require_owner(authority, caller)
        if isinstance(new_rate, bool) or not isinstance(new_rate, int):
            raise InvalidParameter("fee rate must be an integer")
        if not 0 <= new_rate <= MAX_FEE_RATE_PPT:
            raise InvalidParameter(f"fee rate must be within 0..{MAX_FEE_RATE_PPT}")

        old_rate = authority.fee_rate_ppt
        authority.fee_rate_ppt = new_rate
        self.db.flush()
        self.audit.log(
            actor_id=caller,
            action="fee_rate_changed",
            entity_type="fee_authority",
            entity_id=str(authority.id),
            payload={"old_rate": old_rate, "new_rate": new_rate},
        )
        logger.info(
            "fee_rate_changed",
            extra={"caller": caller, "fee_rate": new_rate},
        )
        return new_rate

    def transfer_ownership(self, caller: str, new_owner: str | None) -> str:
        authority = self._get(for_update=True)
        self._require_owner(authority, caller)
        new_owner = normalize_identity(new_owner, "new_owner")

        old_owner = authority.owner
        authority.owner = new_owner
        self.db.flush()
        self.audit.log(
            actor_id=caller,
            action="ownership_transferred",
            entity_type="fee_authority",
            entity_id=str(authority.id),
            payload={"old_owner": old_owner, "new_owner": new_owner},
        )
        logger.info(
            "ownership_transferred",
            extra={"caller": caller, "recipient": new_owner},
        )
        return new_owner

    # ------------------------------------------------------------------
    # Seed
    # ------------------------------------------------------------------

    def ensure_initialized(
        self, owner: str | None = None, fee_rate: int | None = None
    ) -> FeeAuthority:
        """Создать строку fee_authority из настроек, если её ещё нет. Существующую не трогает."""
        authority = self.db.get(FeeAuthority, FEE_AUTHORITY_ID)
        if authority is not None:
            return authority
        rate = settings.fee_rate_ppt if fee_rate is None else fee_rate
        if not 0 <= rate <= MAX_FEE_RATE_PPT:
            raise InvalidParameter(f"fee rate must be within 0..{MAX_FEE_RATE_PPT}")
        authority = FeeAuthority(
            id=FEE_AUTHORITY_ID,
            owner=normalize_identity(owner or settings.fee_authority_owner, "owner"),
            fee_rate_ppt=rate,
        )
        self.db.add(authority)
        self.db.flush()
        logger.info(
            "fee_authority_seeded",
            extra={"caller": authority.owner, "fee_rate": authority.fee_rate_ppt},
        )
        return authority

    def _get(self, for_update: bool = False) -> FeeAuthority:
        query = self.db.query(FeeAuthority).filter(FeeAuthority.id == FEE_AUTHORITY_ID)
        if for_update:
            query = query.with_for_update()
        authority = query.one_or_none()
        if authority is None:
            authority = self.ensure_initialized()
        return authority

    @staticmethod
    def _require_owner(authority: FeeAuthority, caller: str | None) -> None:
        if not caller or caller != authority.owner:
            logger.warning("fee_authority_unauthorized", extra={"caller": caller})
            raise Unauthorized("only the fee authority owner may do this")
