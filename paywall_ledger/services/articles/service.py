"""
ArticleService — реестр статей и проверка доступа.

Ответственности:
- publish: присвоение следующего id и сохранение статьи (метаданные уже провалидированы снаружи)
- can_access / get_content / get_details: доступ выводится из статусов платежей, не из кеша
"""
from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from paywall_ledger.core.exceptions import InvalidParameter, NotFound, PaymentRequired
from paywall_ledger.models.article import Article
from paywall_ledger.models.payment import PAYMENT_PAID, ArticlePayment
from paywall_ledger.paywall.access import decide_access
from paywall_ledger.paywall.models import AccessContext, AccessDecision, ArticleDetails
from paywall_ledger.services.audit.service import AuditService
from paywall_ledger.utils.identity import normalize_identity
from paywall_ledger.utils.metrics import articles_published_total

logger = logging.getLogger(__name__)


class ArticleService:
    def __init__(self, db: Session):
        self.db = db
        self.audit = AuditService(db)

    # ------------------------------------------------------------------
    # Publish
    # ------------------------------------------------------------------

    def publish(
        self,
        author: str,
        price: int,
        content_reference: str,
        title: str = "",
        category: str | None = None,
    ) -> int:
        """Сохранить статью и вернуть её id. Платёжных побочных эффектов нет."""
        author = normalize_identity(author, "author")
        if isinstance(price, bool) or not isinstance(price, int) or price < 0:
            raise InvalidParameter("price must be a non-negative integer")
        if not content_reference:
            raise InvalidParameter("content_reference is required")

        article = Article(
            author=author,
            price=price,
            content_reference=content_reference,
            title=title or "",
            category=category,
        )
        self.db.add(article)
        self.db.flush()

        self.audit.log(
            actor_id=author,
            action="article_published",
            entity_type="article",
            entity_id=str(article.id),
            payload={"price": price},
        )
        articles_published_total.labels(pricing="free" if price == 0 else "paid").inc()
        logger.info(
            "article_published",
            extra={"article_id": article.id, "author": author, "amount": price},
        )
        return article.id

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_article(self, article_id: int) -> Article:
        article = self.db.get(Article, article_id)
        if article is None:
            raise NotFound(f"article {article_id} not found")
        return article

    def list_articles(self, author: str | None = None, limit: int = 100) -> list[Article]:
        query = self.db.query(Article)
        if author:
            query = query.filter(Article.author == author)
        return query.order_by(Article.id).limit(limit).all()

    def decide(self, article: Article, identity: str | None) -> AccessDecision:
        active = self._active_payments([article], identity)
        return _decide(article, identity, active)

    def can_access(self, article_id: int, identity: str | None) -> bool:
        article = self.get_article(article_id)
        return self.decide(article, identity).has_access

    def get_content(self, article_id: int, identity: str | None) -> str:
        article = self.get_article(article_id)
        decision = self.decide(article, identity)
        if not decision.has_access:
            logger.info(
                "content_payment_required",
                extra={"article_id": article_id, "caller": identity},
            )
            raise PaymentRequired("payment required to read this article")
        return article.content_reference

    def get_details(self, article_id: int, identity: str | None) -> ArticleDetails:
        """Публичные метаданные + has_access для вызывающего. content_reference не раскрывается."""
        return self.details_for(self.get_article(article_id), identity)

    def details_for(self, article: Article, identity: str | None) -> ArticleDetails:
        return _details(article, self.decide(article, identity))

    def list_details(self, articles: list[Article], identity: str | None) -> list[ArticleDetails]:
        """get_details для уже загруженных статей: один запрос платежей на весь список."""
        active = self._active_payments(articles, identity)
        return [_details(article, _decide(article, identity, active)) for article in articles]

    def _active_payments(self, articles: list[Article], identity: str | None) -> dict[int, int]:
        """article_id -> число оплат в статусе paid у identity (только платные статьи)."""
        paid_ids = [article.id for article in articles if article.price > 0]
        if not identity or not paid_ids:
            return {}
        rows = (
            self.db.query(ArticlePayment.article_id, func.count(ArticlePayment.id))
            .filter(
                ArticlePayment.article_id.in_(paid_ids),
                ArticlePayment.payer == identity,
                ArticlePayment.status == PAYMENT_PAID,
            )
            .group_by(ArticlePayment.article_id)
            .all()
        )
        return {article_id: count for article_id, count in rows}


def _decide(article: Article, identity: str | None, active: dict[int, int]) -> AccessDecision:
    return decide_access(
        AccessContext(
            article_id=article.id,
            identity=identity,
            price=article.price,
            active_payments=active.get(article.id, 0),
        )
    )


def _details(article: Article, decision: AccessDecision) -> ArticleDetails:
    return ArticleDetails(
        id=article.id,
        author=article.author,
        title=article.title,
        category=article.category,
        price=article.price,
        published_at=article.published_at,
        has_access=decision.has_access,
    )
