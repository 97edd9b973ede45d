from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import BigInteger, Column, DateTime, String

from paywall_ledger.db.base import Base

WITHDRAWAL_PLATFORM_FEES = "platform_fees"
WITHDRAWAL_AUTHOR_EARNINGS = "author_earnings"
WITHDRAWAL_REFUND = "refund"


class Withdrawal(Base):
    """Успешная выплата из ledger. Неудачные выплаты сюда не попадают (баланс восстановлен)."""

    __tablename__ = "withdrawals"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    kind = Column(String, nullable=False, index=True)  # platform_fees / author_earnings / refund
    recipient = Column(String, nullable=False, index=True)
    amount = Column(BigInteger, nullable=False)
    idempotency_key = Column(String, nullable=True, unique=True)  # Idempotency-Key запроса выплаты
    payout_reference = Column(String, nullable=True)  # id выплаты у провайдера
    payment_id = Column(String, nullable=True)         # для refund — ссылка на платёж
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
