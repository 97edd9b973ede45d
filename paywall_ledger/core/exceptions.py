"""
Таксономия ошибок ledger. Все ошибки синхронные: поднимаются в вызове, который их вызвал,
и никогда не ретраятся ядром. API-слой переводит их в HTTP-ответы по status_code.
"""
from typing import Any


class LedgerError(Exception):
    """Base class for all ledger rejections."""

    code = "ledger_error"
    status_code = 400
    default_message = "Ledger operation rejected"

    def __init__(self, message: str | None = None, detail: dict[str, Any] | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.detail}


class Unauthorized(LedgerError):
    code = "unauthorized"
    status_code = 403
    default_message = "Caller is not allowed to perform this operation"


class InvalidParameter(LedgerError):
    code = "invalid_parameter"
    status_code = 422
    default_message = "Invalid parameter"


class NotFound(LedgerError):
    code = "not_found"
    status_code = 404
    default_message = "Not found"


class InsufficientFunds(LedgerError):
    code = "insufficient_funds"
    status_code = 400
    default_message = "Amount sent is below the article price"


class InvalidState(LedgerError):
    code = "invalid_state"
    status_code = 409
    default_message = "Operation not allowed in the current state"


class WindowExpired(LedgerError):
    code = "window_expired"
    status_code = 409
    default_message = "Refund period expired"


class NothingToWithdraw(LedgerError):
    code = "nothing_to_withdraw"
    status_code = 409
    default_message = "Nothing to withdraw"


class InsufficientReserve(LedgerError):
    code = "insufficient_reserve"
    status_code = 409
    default_message = "Ledger reserve does not cover the withdrawal"


class PayoutFailed(LedgerError):
    code = "payout_failed"
    status_code = 502
    default_message = "Payout failed"


class PaymentRequired(LedgerError):
    code = "payment_required"
    status_code = 402
    default_message = "Payment required"
