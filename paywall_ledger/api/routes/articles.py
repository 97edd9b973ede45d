from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from paywall_ledger.api.deps import get_article_service, get_caller, require_caller
from paywall_ledger.core.config import settings
from paywall_ledger.db.session import get_db
from paywall_ledger.paywall.models import ArticleDetails
from paywall_ledger.schemas.articles import (
    AccessOut,
    ArticleContentOut,
    ArticleCreate,
    ArticleCreated,
    ArticleOut,
)
from paywall_ledger.services.articles.service import ArticleService
from paywall_ledger.utils.currency import format_amount


router = APIRouter(prefix="/articles", tags=["articles"])


def _article_out(details: ArticleDetails) -> ArticleOut:
    return ArticleOut(
        **details.model_dump(),
        price_display=format_amount(details.price, settings.amount_decimals),
    )


@router.post("", response_model=ArticleCreated, status_code=201)
def publish_article(
    payload: ArticleCreate,
    caller: str = Depends(require_caller),
    service: ArticleService = Depends(get_article_service),
    db: Session = Depends(get_db),
) -> ArticleCreated:
    article_id = service.publish(
        author=caller,
        price=payload.price,
        content_reference=payload.content_reference,
        title=payload.title,
        category=payload.category,
    )
    db.commit()
    return ArticleCreated(id=article_id)


@router.get("", response_model=list[ArticleOut])
def list_articles(
    author: str | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    caller: str | None = Depends(get_caller),
    service: ArticleService = Depends(get_article_service),
) -> list[ArticleOut]:
    articles = service.list_articles(author=author, limit=limit)
    return [_article_out(details) for details in service.list_details(articles, caller)]


@router.get("/{article_id}", response_model=ArticleOut)
def get_article(
    article_id: int,
    caller: str | None = Depends(get_caller),
    service: ArticleService = Depends(get_article_service),
) -> ArticleOut:
    return _article_out(service.get_details(article_id, caller))


@router.get("/{article_id}/access", response_model=AccessOut)
def check_access(
    article_id: int,
    caller: str | None = Depends(get_caller),
    service: ArticleService = Depends(get_article_service),
) -> AccessOut:
    return AccessOut(
        article_id=article_id,
        identity=caller,
        has_access=service.can_access(article_id, caller),
    )


@router.get("/{article_id}/content", response_model=ArticleContentOut)
def get_content(
    article_id: int,
    caller: str | None = Depends(get_caller),
    service: ArticleService = Depends(get_article_service),
) -> ArticleContentOut:
    return ArticleContentOut(
        id=article_id,
        content_reference=service.get_content(article_id, caller),
    )
