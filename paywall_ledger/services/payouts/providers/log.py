"""
Log provider: ledger только фиксирует выплату, сам перевод выполняется вне платформы.
"""
import logging
from uuid import uuid4

from paywall_ledger.services.payouts.base import PayoutProvider, PayoutRequest, PayoutResult

logger = logging.getLogger(__name__)


class LogPayoutProvider(PayoutProvider):
    name = "log"

    def is_available(self) -> bool:
        return True

    def payout(self, request: PayoutRequest) -> PayoutResult:
        reference = f"log:{uuid4()}"
        logger.info(
            "payout_logged",
            extra={
                "recipient": request.recipient,
                "amount": request.amount,
                "kind": request.kind,
            },
        )
        return PayoutResult(success=True, provider=self.name, provider_reference=reference)
