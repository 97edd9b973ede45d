"""
Decision только: decide_access(ctx) -> AccessDecision.
Чистая функция, без I/O. price == 0 -> доступ всем, иначе нужна хотя бы одна оплата в статусе paid.
"""
from __future__ import annotations

from paywall_ledger.paywall.models import AccessContext, AccessDecision


def decide_access(ctx: AccessContext) -> AccessDecision:
    # Бесплатная статья: доступ любому identity, даже анонимному
    if ctx.price == 0:
        return AccessDecision(has_access=True, reason="free")

    if ctx.identity and ctx.active_payments > 0:
        return AccessDecision(has_access=True, reason="paid")

    return AccessDecision(has_access=False, reason="payment_required")
