"""
LedgerService — учёт оплат статей, комиссий платформы и заработка авторов.

Ответственности:
- pay: сплит платежа по текущей ставке FeeAuthority и начисление балансов
- refund: точный откат начисленного сплита в пределах окна рефанда
- withdraw_platform_fees / withdraw_earnings: вывод баланса через payout-провайдер
- get_balances / reconcile: сверка сохранения средств

Все выплаты идут по одной схеме: сначала списание (flush), потом внешний payout.
Если payout не удался — баланс восстанавливается и поднимается PayoutFailed.
Обратный порядок (payout, потом списание) запрещён: повторный вход во время
payout увидел бы ещё не списанный баланс.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy import func
from sqlalchemy.orm import Session

from paywall_ledger.core.config import settings
from paywall_ledger.core.exceptions import (
    InsufficientFunds,
    InsufficientReserve,
    InvalidParameter,
    InvalidState,
    NotFound,
    NothingToWithdraw,
    PayoutFailed,
    Unauthorized,
    WindowExpired,
)
from paywall_ledger.models.balance import LEDGER_STATE_ID, AuthorEarnings, LedgerState
from paywall_ledger.models.payment import PAYMENT_PAID, PAYMENT_REFUNDED, ArticlePayment
from paywall_ledger.models.withdrawal import (
    WITHDRAWAL_AUTHOR_EARNINGS,
    WITHDRAWAL_PLATFORM_FEES,
    WITHDRAWAL_REFUND,
    Withdrawal,
)
from paywall_ledger.services.articles.service import ArticleService
from paywall_ledger.services.audit.service import AuditService
from paywall_ledger.services.fee_authority.service import FeeAuthorityService
from paywall_ledger.services.ledger.split import split_payment
from paywall_ledger.services.payouts.base import (
    PayoutError,
    PayoutProvider,
    PayoutRequest,
    PayoutResult,
)
from paywall_ledger.services.payouts.factory import PayoutProviderFactory
from paywall_ledger.utils.identity import normalize_identity
from paywall_ledger.utils.metrics import (
    payment_amount_total,
    payments_total,
    payout_failures_total,
    refunds_total,
    withdrawals_total,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # sqlite возвращает naive datetime даже для DateTime(timezone=True)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _payout_reference(kind: str, recipient: str, seq: int) -> str:
    # Idempotency-Key выплаты. seq меняется только вместе с закоммиченным списанием:
    # повтор после отката (payout или commit) уходит с тем же ключом.
    return f"{kind}:{recipient}:{seq}"


class LedgerService:
    def __init__(
        self,
        db: Session,
        fee_authority: FeeAuthorityService | None = None,
        payout_provider: PayoutProvider | None = None,
        clock: Callable[[], datetime] | None = None,
        refund_period: timedelta | None = None,
        refund_payout_enabled: bool | None = None,
    ):
        self.db = db
        self.fee_authority = fee_authority or FeeAuthorityService(db)
        self.payout_provider = payout_provider or PayoutProviderFactory.create_from_settings(settings)
        self.clock = clock or _utcnow
        self.refund_period = refund_period or timedelta(hours=settings.refund_period_hours)
        self.refund_payout_enabled = (
            settings.refund_payout_enabled if refund_payout_enabled is None else refund_payout_enabled
        )
        self.articles = ArticleService(db)
        self.audit = AuditService(db)

    # ------------------------------------------------------------------
    # Pay
    # ------------------------------------------------------------------

    def pay(self, payer: str, article_id: int, amount_sent: int) -> ArticlePayment:
        """
        Записать оплату статьи. Переплата принимается и целиком идёт в сплит (сдача не возвращается).
        Повторная оплата той же статьи не отклоняется: создаётся ещё одна независимая запись.
        """
        payer = normalize_identity(payer, "payer")
        if isinstance(amount_sent, bool) or not isinstance(amount_sent, int) or amount_sent < 0:
            raise InvalidParameter("amount must be a non-negative integer")

        article = self.articles.get_article(article_id)
        if article.price == 0:
            raise InvalidState("this article is free")
        if amount_sent < article.price:
            raise InsufficientFunds(
                "amount sent is below the article price",
                {"price": article.price, "amount": amount_sent},
            )

        # Ставка читается ровно один раз и фиксируется в записи платежа
        fee_rate = self.fee_authority.current_fee_rate()
        platform_fee, author_amount = split_payment(amount_sent, fee_rate)

        state = self._lock_state()
        earnings = self._lock_earnings(article.author)
        state.accumulated_fees += platform_fee
        state.reserve += amount_sent
        earnings.balance += author_amount

        if self._active_payments_count(article.id, payer) > 0:
            logger.info(
                "payment_repeated",
                extra={"article_id": article.id, "payer": payer},
            )

        payment = ArticlePayment(
            article_id=article.id,
            payer=payer,
            payer_seq=self._last_payer_seq(article.id, payer) + 1,
            amount_paid=amount_sent,
            fee_rate_ppt=fee_rate,
            platform_fee=platform_fee,
            author_amount=author_amount,
            status=PAYMENT_PAID,
            paid_at=self.clock(),
        )
        self.db.add(payment)
        self.db.flush()

        self.audit.log(
            actor_id=payer,
            action="payment_recorded",
            entity_type="article_payment",
            entity_id=payment.id,
            payload={
                "article_id": article.id,
                "amount_paid": amount_sent,
                "fee_rate_ppt": fee_rate,
                "platform_fee": platform_fee,
                "author_amount": author_amount,
            },
        )
        payments_total.inc()
        payment_amount_total.inc(amount_sent)
        logger.info(
            "payment_recorded",
            extra={
                "payment_id": payment.id,
                "article_id": article.id,
                "payer": payer,
                "author": article.author,
                "amount": amount_sent,
                "fee_rate": fee_rate,
                "platform_fee": platform_fee,
                "author_amount": author_amount,
            },
        )
        return payment

    # ------------------------------------------------------------------
    # Refund
    # ------------------------------------------------------------------

    def refund(self, payer: str, article_id: int) -> ArticlePayment:
        """
        Откатить последнюю действующую оплату (article_id, payer) в пределах окна.

        Снимается ровно тот сплит, что был начислен при оплате (ставка не пересчитывается).
        При refund_payout_enabled amount_paid возвращается плательщику через payout-провайдер.
        """
        payer = normalize_identity(payer, "payer")
        payment = (
            self.db.query(ArticlePayment)
            .filter(
                ArticlePayment.article_id == article_id,
                ArticlePayment.payer == payer,
                ArticlePayment.status == PAYMENT_PAID,
            )
            .order_by(ArticlePayment.paid_at.desc(), ArticlePayment.payer_seq.desc())
            .with_for_update()
            .first()
        )
        if payment is None:
            refunds_total.labels(result="rejected").inc()
            raise NotFound("no paid payment for this article and payer")

        now = self.clock()
        deadline = _as_utc(payment.paid_at) + self.refund_period
        if now > deadline:
            refunds_total.labels(result="window_expired").inc()
            logger.info(
                "refund_window_expired",
                extra={"payment_id": payment.id, "article_id": article_id, "payer": payer},
            )
            raise WindowExpired("refund period expired")

        article = self.articles.get_article(article_id)
        state = self._lock_state()
        earnings = self._lock_earnings(article.author)
        if state.accumulated_fees < payment.platform_fee or earnings.balance < payment.author_amount:
            refunds_total.labels(result="rejected").inc()
            raise InvalidState("payment proceeds were already withdrawn")
        if state.reserve < payment.amount_paid:
            refunds_total.labels(result="rejected").inc()
            raise InsufficientReserve()

        def debit() -> None:
            state.accumulated_fees -= payment.platform_fee
            earnings.balance -= payment.author_amount
            state.reserve -= payment.amount_paid
            payment.status = PAYMENT_REFUNDED
            payment.refunded_at = now

        def restore() -> None:
            state.accumulated_fees += payment.platform_fee
            earnings.balance += payment.author_amount
            state.reserve += payment.amount_paid
            payment.status = PAYMENT_PAID
            payment.refunded_at = None

        if self.refund_payout_enabled:
            request = PayoutRequest(
                recipient=payer,
                amount=payment.amount_paid,
                kind=WITHDRAWAL_REFUND,
                reference=f"refund:{payment.id}",
                metadata={"article_id": article_id},
            )
            try:
                result = self._debit_then_payout(request, debit, restore)
            except PayoutFailed:
                refunds_total.labels(result="payout_failed").inc()
                raise
            self._record_withdrawal(request, result, payment_id=payment.id)
        else:
            debit()
            self.db.flush()

        self.audit.log(
            actor_id=payer,
            action="payment_refunded",
            entity_type="article_payment",
            entity_id=payment.id,
            payload={
                "article_id": article_id,
                "amount_paid": payment.amount_paid,
                "platform_fee": payment.platform_fee,
                "author_amount": payment.author_amount,
                "paid_out": self.refund_payout_enabled,
            },
        )
        refunds_total.labels(result="ok").inc()
        logger.info(
            "payment_refunded",
            extra={
                "payment_id": payment.id,
                "article_id": article_id,
                "payer": payer,
                "amount": payment.amount_paid,
                "platform_fee": payment.platform_fee,
                "author_amount": payment.author_amount,
            },
        )
        return payment

    # ------------------------------------------------------------------
    # Withdrawals
    # ------------------------------------------------------------------

    def withdraw_platform_fees(self, caller: str) -> Withdrawal:
        """Вывести все накопленные комиссии текущему владельцу FeeAuthority."""
        owner = self.fee_authority.owner()
        if not caller or caller != owner:
            logger.warning(
                "withdraw_unauthorized",
                extra={"caller": caller, "kind": WITHDRAWAL_PLATFORM_FEES},
            )
            raise Unauthorized("only the fee authority owner may withdraw platform fees")

        state = self._lock_state()
        amount = state.accumulated_fees
        if amount <= 0:
            raise NothingToWithdraw("no platform fees to withdraw")
        if state.reserve < amount:
            logger.error(
                "ledger_reserve_drift",
                extra={"kind": WITHDRAWAL_PLATFORM_FEES, "amount": amount},
            )
            raise InsufficientReserve()

        seq = state.fee_payout_seq + 1

        def debit() -> None:
            state.accumulated_fees -= amount
            state.reserve -= amount
            state.fee_payout_seq = seq

        def restore() -> None:
            state.accumulated_fees += amount
            state.reserve += amount
            state.fee_payout_seq = seq - 1

        request = PayoutRequest(
            recipient=owner,
            amount=amount,
            kind=WITHDRAWAL_PLATFORM_FEES,
            reference=_payout_reference(WITHDRAWAL_PLATFORM_FEES, owner, seq),
        )
        result = self._debit_then_payout(request, debit, restore)
        return self._record_withdrawal(request, result)

    def withdraw_earnings(self, caller: str, author: str | None = None) -> Withdrawal:
        """Вывести весь заработок автора. Забрать его может только сам автор."""
        author = author or caller
        if not caller or caller != author:
            logger.warning(
                "withdraw_unauthorized",
                extra={"caller": caller, "author": author, "kind": WITHDRAWAL_AUTHOR_EARNINGS},
            )
            raise Unauthorized("only the author may withdraw their earnings")

        earnings = self._lock_earnings(author, create=False)
        amount = earnings.balance if earnings is not None else 0
        if amount <= 0:
            raise NothingToWithdraw("no earnings to withdraw")
        state = self._lock_state()
        if state.reserve < amount:
            logger.error(
                "ledger_reserve_drift",
                extra={"kind": WITHDRAWAL_AUTHOR_EARNINGS, "author": author, "amount": amount},
            )
            raise InsufficientReserve()

        seq = earnings.payout_seq + 1

        def debit() -> None:
            earnings.balance -= amount
            state.reserve -= amount
            earnings.payout_seq = seq

        def restore() -> None:
            earnings.balance += amount
            state.reserve += amount
            earnings.payout_seq = seq - 1

        request = PayoutRequest(
            recipient=author,
            amount=amount,
            kind=WITHDRAWAL_AUTHOR_EARNINGS,
            reference=_payout_reference(WITHDRAWAL_AUTHOR_EARNINGS, author, seq),
        )
        result = self._debit_then_payout(request, debit, restore)
        return self._record_withdrawal(request, result)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_balances(self, author: str | None = None) -> dict[str, int]:
        state = self.db.get(LedgerState, LEDGER_STATE_ID)
        result = {
            "accumulated_fees": state.accumulated_fees if state else 0,
            "reserve": state.reserve if state else 0,
        }
        if author is not None:
            earnings = self.db.get(AuthorEarnings, author)
            result["author_earnings"] = earnings.balance if earnings else 0
        return result

    def author_earnings(self, author: str) -> int:
        earnings = self.db.get(AuthorEarnings, author)
        return earnings.balance if earnings else 0

    def list_payments(
        self,
        payer: str | None = None,
        article_id: int | None = None,
        limit: int = 100,
    ) -> list[ArticlePayment]:
        query = self.db.query(ArticlePayment)
        if payer:
            query = query.filter(ArticlePayment.payer == payer)
        if article_id is not None:
            query = query.filter(ArticlePayment.article_id == article_id)
        return (
            query.order_by(ArticlePayment.paid_at.desc(), ArticlePayment.payer_seq.desc())
            .limit(limit)
            .all()
        )

    def reconcile(self) -> dict[str, int | bool]:
        """
        Сверка сохранения средств:
        accumulated_fees + Σ author_earnings + Σ выведенного == Σ amount_paid по не-refunded платежам.
        """
        paid = (
            self.db.query(func.coalesce(func.sum(ArticlePayment.amount_paid), 0))
            .filter(ArticlePayment.status == PAYMENT_PAID)
            .scalar()
        )
        earnings = self.db.query(func.coalesce(func.sum(AuthorEarnings.balance), 0)).scalar()
        withdrawn = (
            self.db.query(func.coalesce(func.sum(Withdrawal.amount), 0))
            .filter(Withdrawal.kind != WITHDRAWAL_REFUND)
            .scalar()
        )
        balances = self.get_balances()
        fees = balances["accumulated_fees"]
        return {
            "paid": int(paid),
            "accumulated_fees": int(fees),
            "author_earnings": int(earnings),
            "withdrawn": int(withdrawn),
            "reserve": int(balances["reserve"]),
            "balanced": int(fees) + int(earnings) + int(withdrawn) == int(paid),
        }

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _debit_then_payout(
        self,
        request: PayoutRequest,
        debit: Callable[[], None],
        restore: Callable[[], None],
    ) -> PayoutResult:
        """Списать, зафиксировать списание, затем выплатить. При неудаче — restore и PayoutFailed."""
        debit()
        self.db.flush()

        cause: BaseException | None = None
        try:
            result = self.payout_provider.payout(request)
            error = None if result.success else (result.error or "payout rejected")
        except PayoutError as e:
            error, cause = str(e), e
        except Exception as e:
            logger.exception("payout_provider_error", extra={"kind": request.kind})
            error, cause = f"{type(e).__name__}: {e}", e

        if error is None:
            return result

        restore()
        self.db.flush()
        payout_failures_total.labels(kind=request.kind).inc()
        logger.warning(
            "payout_failed",
            extra={
                "kind": request.kind,
                "recipient": request.recipient,
                "amount": request.amount,
                "error": error,
            },
        )
        raise PayoutFailed(f"payout failed: {error}") from cause

    def _record_withdrawal(
        self,
        request: PayoutRequest,
        result: PayoutResult,
        payment_id: str | None = None,
    ) -> Withdrawal:
        withdrawal = Withdrawal(
            kind=request.kind,
            recipient=request.recipient,
            amount=request.amount,
            idempotency_key=request.reference,
            payout_reference=result.provider_reference,
            payment_id=payment_id,
            created_at=self.clock(),
        )
        self.db.add(withdrawal)
        self.db.flush()
        self.audit.log(
            actor_id=request.recipient,
            action="withdrawal_completed",
            entity_type="withdrawal",
            entity_id=withdrawal.id,
            payload={"kind": request.kind, "amount": request.amount, "provider": result.provider},
        )
        withdrawals_total.labels(kind=request.kind).inc()
        logger.info(
            "withdrawal_completed",
            extra={
                "withdrawal_id": withdrawal.id,
                "kind": request.kind,
                "recipient": request.recipient,
                "amount": request.amount,
            },
        )
        return withdrawal

    def _last_payer_seq(self, article_id: int, payer: str) -> int:
        last = (
            self.db.query(func.max(ArticlePayment.payer_seq))
            .filter(ArticlePayment.article_id == article_id, ArticlePayment.payer == payer)
            .scalar()
        )
        return last or 0

    def _active_payments_count(self, article_id: int, payer: str) -> int:
        return (
            self.db.query(ArticlePayment)
            .filter(
                ArticlePayment.article_id == article_id,
                ArticlePayment.payer == payer,
                ArticlePayment.status == PAYMENT_PAID,
            )
            .count()
        )

    def _lock_state(self) -> LedgerState:
        state = (
            self.db.query(LedgerState)
            .filter(LedgerState.id == LEDGER_STATE_ID)
            .with_for_update()
            .one_or_none()
        )
        if state is None:
            state = LedgerState(id=LEDGER_STATE_ID, accumulated_fees=0, reserve=0, fee_payout_seq=0)
            self.db.add(state)
            self.db.flush()
        return state

    def _lock_earnings(self, author: str, create: bool = True) -> AuthorEarnings | None:
        earnings = (
            self.db.query(AuthorEarnings)
            .filter(AuthorEarnings.author == author)
            .with_for_update()
            .one_or_none()
        )
        if earnings is None and create:
            earnings = AuthorEarnings(author=author, balance=0, payout_seq=0)
            self.db.add(earnings)
            self.db.flush()
        return earnings
