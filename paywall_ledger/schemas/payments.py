from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PaymentCreate(BaseModel):
    amount: int = Field(..., ge=0)


class PaymentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    article_id: int
    payer: str
    payer_seq: int
    amount_paid: int
    fee_rate_ppt: int
    platform_fee: int
    author_amount: int
    status: str
    paid_at: datetime
    refunded_at: datetime | None = None


class WithdrawalOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: str
    recipient: str
    amount: int
    idempotency_key: str | None = None
    payout_reference: str | None = None
    created_at: datetime


class BalancesOut(BaseModel):
    accumulated_fees: int
    reserve: int
    author_earnings: int | None = None


class ReconcileOut(BaseModel):
    paid: int
    accumulated_fees: int
    author_earnings: int
    withdrawn: int
    reserve: int
    balanced: bool
