"""
ArticlePayment — оплата статьи читателем. Сплит (platform_fee / author_amount) и ставка
фиксируются в момент оплаты и больше не пересчитываются. status: paid / refunded.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import BigInteger, Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint

from paywall_ledger.db.base import Base

PAYMENT_PAID = "paid"
PAYMENT_REFUNDED = "refunded"


class ArticlePayment(Base):
    __tablename__ = "article_payments"
    __table_args__ = (
        Index("ix_article_payments_article_payer", "article_id", "payer"),
        UniqueConstraint("article_id", "payer", "payer_seq", name="uq_article_payments_payer_seq"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False)
    payer = Column(String, nullable=False, index=True)
    # 1, 2, ... среди оплат (article_id, payer): порядок при равных paid_at
    payer_seq = Column(Integer, nullable=False, default=1)
    amount_paid = Column(BigInteger, nullable=False)          # сколько прислал плательщик (>= price)
    fee_rate_ppt = Column(Integer, nullable=False)            # ставка на момент оплаты
    platform_fee = Column(BigInteger, nullable=False)
    author_amount = Column(BigInteger, nullable=False)
    status = Column(String, nullable=False, default=PAYMENT_PAID)  # paid / refunded
    paid_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    refunded_at = Column(DateTime(timezone=True), nullable=True)
