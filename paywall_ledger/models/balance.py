from sqlalchemy import BigInteger, Column, Integer, String

from paywall_ledger.db.base import Base

LEDGER_STATE_ID = 1


class LedgerState(Base):
    """Единственная строка: накопленные комиссии платформы и весь резерв ledger."""

    __tablename__ = "ledger_state"

    id = Column(Integer, primary_key=True, default=LEDGER_STATE_ID)
    accumulated_fees = Column(BigInteger, nullable=False, default=0)
    # Всё, что ledger держит: поступления минус выплаты и рефанды
    reserve = Column(BigInteger, nullable=False, default=0)
    # Номер последнего вывода комиссий; откатывается вместе со списанием
    fee_payout_seq = Column(Integer, nullable=False, default=0)


class AuthorEarnings(Base):
    __tablename__ = "author_earnings"

    author = Column(String, primary_key=True)
    balance = Column(BigInteger, nullable=False, default=0)
    payout_seq = Column(Integer, nullable=False, default=0)
