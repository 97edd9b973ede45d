from paywall_ledger.models.article import Article
from paywall_ledger.models.audit_log import AuditLog
from paywall_ledger.models.balance import AuthorEarnings, LedgerState
from paywall_ledger.models.fee_authority import FeeAuthority
from paywall_ledger.models.payment import ArticlePayment
from paywall_ledger.models.withdrawal import Withdrawal

__all__ = [
    "Article",
    "ArticlePayment",
    "AuditLog",
    "AuthorEarnings",
    "FeeAuthority",
    "LedgerState",
    "Withdrawal",
]
