from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from paywall_ledger.db.base import Base

FEE_AUTHORITY_ID = 1


class FeeAuthority(Base):
    __tablename__ = "fee_authority"

    id = Column(Integer, primary_key=True, default=FEE_AUTHORITY_ID)
    owner = Column(String, nullable=False)
    fee_rate_ppt = Column(Integer, nullable=False, default=0)  # 0..1000
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
