"""
Base classes and types for payout providers.
Used by factory, LedgerService and all providers (log, webhook).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PayoutRequest:
    """Instruction to move value out of the ledger."""
    recipient: str
    amount: int
    kind: str  # platform_fees, author_earnings, refund
    reference: str  # idempotency key on the provider side
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class PayoutResult:
    """Result of a payout attempt. success=False means nothing was sent."""
    success: bool
    provider: str
    provider_reference: str | None = None
    error: str | None = None


class PayoutError(Exception):
    """Raised by providers when the transfer was rejected; detail is logged by the ledger."""
    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.detail = detail or {}


class PayoutProvider(ABC):
    """
    Base class for payout providers.

    Контракт: payout атомарен на стороне получателя. Либо средства отправлены
    (success=True), либо нет (success=False или исключение); частичных выплат не бывает.
    """

    name = "base"

    def __init__(self, config: dict) -> None:
        self.config = config

    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is configured and available."""

    @abstractmethod
    def payout(self, request: PayoutRequest) -> PayoutResult:
        """Send request.amount to request.recipient. Raises PayoutError or returns success=False on failure."""
