from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ArticleCreate(BaseModel):
    """Метаданные статьи. Длины/формат проверяются здесь, ledger им доверяет."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1, max_length=200)
    category: str | None = Field(None, max_length=64)
    content_reference: str = Field(..., min_length=1, max_length=512)
    price: int = Field(..., ge=0)  # минимальные единицы, 0 = бесплатно


class ArticleCreated(BaseModel):
    id: int


class ArticleOut(BaseModel):
    id: int
    author: str
    title: str
    category: str | None = None
    price: int
    price_display: str
    published_at: datetime
    has_access: bool


class ArticleContentOut(BaseModel):
    id: int
    content_reference: str


class AccessOut(BaseModel):
    article_id: int
    identity: str | None = None
    has_access: bool
