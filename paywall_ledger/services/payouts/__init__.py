from paywall_ledger.services.payouts.base import (
    PayoutError,
    PayoutProvider,
    PayoutRequest,
    PayoutResult,
)
from paywall_ledger.services.payouts.factory import PayoutProviderFactory

__all__ = [
    "PayoutError",
    "PayoutProvider",
    "PayoutProviderFactory",
    "PayoutRequest",
    "PayoutResult",
]
