"""Общие фикстуры: in-memory SQLite, управляемые часы, фейковый payout-провайдер."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from paywall_ledger.db.base import Base
import paywall_ledger.models  # noqa: F401
from paywall_ledger.services.fee_authority.service import FeeAuthorityService
from paywall_ledger.services.ledger.service import LedgerService
from paywall_ledger.services.payouts.base import PayoutProvider, PayoutRequest, PayoutResult

UNIT = 1_000_000  # 1.0 единица при amount_decimals=6
OWNER = "platform"


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakePayoutProvider(PayoutProvider):
    """Записывает выплаты; fail=True — каждая выплата отклоняется."""

    name = "fake"

    def __init__(self, fail: bool = False):
        super().__init__({})
        self.fail = fail
        self.sent: list[PayoutRequest] = []
        self.on_payout = None

    def is_available(self) -> bool:
        return True

    def payout(self, request: PayoutRequest) -> PayoutResult:
        if self.on_payout is not None:
            self.on_payout(request)
        if self.fail:
            return PayoutResult(success=False, provider=self.name, error="recipient rejected")
        self.sent.append(request)
        return PayoutResult(success=True, provider=self.name, provider_reference=f"fake:{len(self.sent)}")


def make_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def engine():
    engine = make_engine()
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def payouts():
    return FakePayoutProvider()


@pytest.fixture
def fee_authority(db):
    service = FeeAuthorityService(db)
    service.ensure_initialized(owner=OWNER, fee_rate=100)
    return service


@pytest.fixture
def ledger(db, fee_authority, payouts, clock):
    return LedgerService(
        db,
        fee_authority=fee_authority,
        payout_provider=payouts,
        clock=clock,
        refund_period=timedelta(hours=24),
        refund_payout_enabled=True,
    )
