"""
Unit-тесты для decide_access: чистая логика, без БД.
"""
import unittest

from paywall_ledger.paywall.access import decide_access
from paywall_ledger.paywall.models import AccessContext


class TestDecideAccess(unittest.TestCase):
    def test_free_article_open_to_anyone(self):
        decision = decide_access(AccessContext(article_id=1, identity="reader", price=0))
        self.assertTrue(decision.has_access)
        self.assertEqual(decision.reason, "free")

    def test_free_article_open_to_anonymous(self):
        decision = decide_access(AccessContext(article_id=1, identity=None, price=0))
        self.assertTrue(decision.has_access)

    def test_paid_article_without_payment(self):
        decision = decide_access(AccessContext(article_id=1, identity="reader", price=10))
        self.assertFalse(decision.has_access)
        self.assertEqual(decision.reason, "payment_required")

    def test_paid_article_with_active_payment(self):
        decision = decide_access(
            AccessContext(article_id=1, identity="reader", price=10, active_payments=1)
        )
        self.assertTrue(decision.has_access)
        self.assertEqual(decision.reason, "paid")

    def test_anonymous_never_gets_paid_article(self):
        """Без identity оплата не может быть засчитана."""
        decision = decide_access(
            AccessContext(article_id=1, identity=None, price=10, active_payments=3)
        )
        self.assertFalse(decision.has_access)

    def test_context_is_frozen(self):
        ctx = AccessContext(article_id=1, identity="reader", price=10)
        with self.assertRaises(Exception):
            ctx.price = 0
