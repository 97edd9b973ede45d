"""
Paywall: решение о доступе к статье отделено от ledger; контракт через AccessContext.
"""
from paywall_ledger.paywall.access import decide_access
from paywall_ledger.paywall.models import AccessContext, AccessDecision, ArticleDetails

__all__ = [
    "AccessContext",
    "AccessDecision",
    "ArticleDetails",
    "decide_access",
]
