"""
DTO paywall: AccessContext (вход decide_access), AccessDecision, ArticleDetails.
"""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


# ----- Вход для decide_access (единый контракт, чтобы не расползаться по сигнатурам) -----


class AccessContext(BaseModel):
    """Вход decide_access: цена статьи и число действующих (не refunded) оплат identity."""

    article_id: int
    identity: str | None = None
    price: int
    # Считается из status платежей, а не из закешированного флага
    active_payments: int = 0

    model_config = {"frozen": True}


# ----- Решение доступа (чистая логика, без I/O) -----


class AccessDecision(BaseModel):
    has_access: bool
    reason: str = Field(..., description="free | paid | payment_required")

    model_config = {"frozen": True}


# ----- Публичные метаданные статьи + флаг доступа конкретного вызывающего -----


class ArticleDetails(BaseModel):
    id: int
    author: str
    title: str
    category: str | None = None
    price: int
    published_at: datetime
    has_access: bool

    model_config = {"frozen": True}
