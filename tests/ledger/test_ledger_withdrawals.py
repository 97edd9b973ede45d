"""Tests for withdrawals: права, пустой баланс, атомарность списания и выплаты."""
import random

import httpx
import pybreaker
import pytest

from paywall_ledger.core.exceptions import (
    InsufficientReserve,
    LedgerError,
    NothingToWithdraw,
    PayoutFailed,
    Unauthorized,
)
from paywall_ledger.models.balance import LedgerState
from paywall_ledger.models.withdrawal import Withdrawal
from paywall_ledger.services.articles.service import ArticleService
from paywall_ledger.services.ledger.service import LedgerService
from paywall_ledger.services.payouts.providers.webhook import WebhookPayoutProvider

UNIT = 1_000_000
AUTHOR = "alice"


@pytest.fixture
def article_id(db):
    return ArticleService(db).publish(AUTHOR, UNIT, "ipfs://paid", title="Paid")


@pytest.fixture
def funded(ledger, article_id):
    ledger.pay("bob", article_id, UNIT)
    return article_id


class TestPlatformFees:
    def test_owner_withdraws_fees(self, ledger, payouts, funded):
        withdrawal = ledger.withdraw_platform_fees("platform")

        assert withdrawal.amount == 100_000
        assert withdrawal.recipient == "platform"
        assert ledger.get_balances() == {"accumulated_fees": 0, "reserve": 900_000}
        assert payouts.sent[0].amount == 100_000

    def test_non_owner_rejected(self, ledger, funded):
        with pytest.raises(Unauthorized):
            ledger.withdraw_platform_fees(AUTHOR)
        assert ledger.get_balances()["accumulated_fees"] == 100_000

    def test_fees_follow_ownership_transfer(self, ledger, fee_authority, payouts, funded):
        fee_authority.transfer_ownership("platform", "treasury")

        with pytest.raises(Unauthorized):
            ledger.withdraw_platform_fees("platform")
        ledger.withdraw_platform_fees("treasury")
        assert payouts.sent[0].recipient == "treasury"

    def test_zero_balance(self, ledger):
        with pytest.raises(NothingToWithdraw):
            ledger.withdraw_platform_fees("platform")

    def test_second_withdrawal_fails(self, ledger, funded):
        ledger.withdraw_platform_fees("platform")
        with pytest.raises(NothingToWithdraw):
            ledger.withdraw_platform_fees("platform")


class TestEarnings:
    def test_author_withdraws(self, ledger, payouts, funded):
        withdrawal = ledger.withdraw_earnings(AUTHOR)

        assert withdrawal.amount == 900_000
        assert ledger.author_earnings(AUTHOR) == 0
        assert payouts.sent[0].recipient == AUTHOR

    def test_other_caller_cannot_claim(self, ledger, funded):
        with pytest.raises(Unauthorized):
            ledger.withdraw_earnings("mallory", author=AUTHOR)
        assert ledger.author_earnings(AUTHOR) == 900_000

    def test_unknown_author_has_nothing(self, ledger, funded):
        with pytest.raises(NothingToWithdraw):
            ledger.withdraw_earnings("nobody")

    def test_withdraw_twice(self, ledger, funded):
        ledger.withdraw_earnings(AUTHOR)
        with pytest.raises(NothingToWithdraw):
            ledger.withdraw_earnings(AUTHOR)


class TestPayoutAtomicity:
    def test_failed_payout_restores_balance(self, db, ledger, payouts, funded):
        payouts.fail = True

        with pytest.raises(PayoutFailed):
            ledger.withdraw_earnings(AUTHOR)
        with pytest.raises(PayoutFailed):
            ledger.withdraw_platform_fees("platform")

        assert ledger.get_balances(author=AUTHOR) == {
            "accumulated_fees": 100_000,
            "reserve": UNIT,
            "author_earnings": 900_000,
        }
        assert db.query(Withdrawal).count() == 0

        payouts.fail = False
        assert ledger.withdraw_earnings(AUTHOR).amount == 900_000

    def test_retry_after_failed_payout_reuses_reference(self, ledger, payouts, funded):
        references = []
        payouts.on_payout = lambda request: references.append(request.reference)
        payouts.fail = True
        with pytest.raises(PayoutFailed):
            ledger.withdraw_earnings(AUTHOR)

        payouts.fail = False
        withdrawal = ledger.withdraw_earnings(AUTHOR)

        assert references == ["author_earnings:alice:1", "author_earnings:alice:1"]
        assert withdrawal.idempotency_key == "author_earnings:alice:1"

    def test_retry_after_rolled_back_commit_reuses_reference(self, db, ledger, payouts, funded):
        db.commit()

        ledger.withdraw_earnings(AUTHOR)
        ledger.withdraw_platform_fees("platform")
        # выплаты ушли, но commit транзакции не случился
        db.rollback()
        assert ledger.author_earnings(AUTHOR) == 900_000

        ledger.withdraw_earnings(AUTHOR)
        ledger.withdraw_platform_fees("platform")

        assert [r.reference for r in payouts.sent] == [
            "author_earnings:alice:1",
            "platform_fees:platform:1",
            "author_earnings:alice:1",
            "platform_fees:platform:1",
        ]

    def test_each_completed_withdrawal_gets_new_reference(self, ledger, payouts, funded):
        ledger.withdraw_earnings(AUTHOR)
        ledger.withdraw_platform_fees("platform")
        ledger.pay("bob", funded, UNIT)
        ledger.withdraw_earnings(AUTHOR)
        ledger.withdraw_platform_fees("platform")

        assert [r.reference for r in payouts.sent] == [
            "author_earnings:alice:1",
            "platform_fees:platform:1",
            "author_earnings:alice:2",
            "platform_fees:platform:2",
        ]

    def test_webhook_2xx_with_unexpected_body_keeps_debit(self, db, fee_authority, clock, funded):
        sent = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return httpx.Response(200, json="accepted")

        provider = WebhookPayoutProvider(
            {
                "url": "https://payouts.example/send",
                "breaker": pybreaker.CircuitBreaker(fail_max=5, reset_timeout=60),
            },
            client=httpx.Client(transport=httpx.MockTransport(handler)),
        )
        ledger = LedgerService(db, fee_authority=fee_authority, payout_provider=provider, clock=clock)

        withdrawal = ledger.withdraw_earnings(AUTHOR)

        assert len(sent) == 1
        assert withdrawal.payout_reference is None
        assert ledger.author_earnings(AUTHOR) == 0
        assert ledger.get_balances()["reserve"] == 100_000

    def test_provider_exception_is_payout_failed(self, ledger, payouts, funded):
        def boom(request):
            raise ConnectionError("network down")

        payouts.on_payout = boom
        with pytest.raises(PayoutFailed) as exc_info:
            ledger.withdraw_earnings(AUTHOR)
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert ledger.author_earnings(AUTHOR) == 900_000

    def test_balance_is_debited_before_payout(self, ledger, payouts, funded):
        """Повторный вход из payout видит уже обнулённый баланс."""
        seen = {}

        def reenter(request):
            seen["balance_during_payout"] = ledger.author_earnings(AUTHOR)
            try:
                ledger.withdraw_earnings(AUTHOR)
            except LedgerError as e:
                seen["reentry_error"] = e

        payouts.on_payout = reenter
        ledger.withdraw_earnings(AUTHOR)

        assert seen["balance_during_payout"] == 0
        assert isinstance(seen["reentry_error"], NothingToWithdraw)
        assert len(payouts.sent) == 1

    def test_insufficient_reserve(self, db, ledger, funded):
        state = db.get(LedgerState, 1)
        state.reserve = 10
        db.flush()

        with pytest.raises(InsufficientReserve):
            ledger.withdraw_earnings(AUTHOR)
        with pytest.raises(InsufficientReserve):
            ledger.withdraw_platform_fees("platform")
        assert ledger.author_earnings(AUTHOR) == 900_000
        assert ledger.get_balances()["accumulated_fees"] == 100_000


def test_conservation_over_random_operations(db, ledger, fee_authority, clock):
    rng = random.Random(42)
    articles = ArticleService(db)
    authors = ["alice", "carol", "dave"]
    readers = ["r1", "r2", "r3", "r4"]
    ids = [articles.publish(a, rng.randint(1, 5) * UNIT, f"ref://{a}") for a in authors]
    earnings_withdrawn = False

    for _ in range(300):
        op = rng.random()
        try:
            if op < 0.45:
                article_id = rng.choice(ids)
                price = articles.get_article(article_id).price
                ledger.pay(rng.choice(readers), article_id, price + rng.randint(0, UNIT))
            elif op < 0.6:
                ledger.refund(rng.choice(readers), rng.choice(ids))
            elif op < 0.75:
                ledger.withdraw_earnings(rng.choice(authors))
                earnings_withdrawn = True
            elif op < 0.85:
                ledger.withdraw_platform_fees("platform")
            elif op < 0.92:
                fee_authority.set_fee_rate("platform", rng.randint(0, 1000))
            else:
                clock.advance(hours=rng.randint(1, 30))
        except LedgerError:
            pass

        totals = ledger.reconcile()
        assert totals["balanced"], totals
        assert totals["reserve"] == totals["accumulated_fees"] + totals["author_earnings"]
        assert totals["accumulated_fees"] >= 0
        assert totals["author_earnings"] >= 0

    assert earnings_withdrawn
