"""
Article — опубликованный контент. Создаётся один раз через publish, никогда не удаляется.
price = 0 означает свободный доступ.
"""
from datetime import datetime, timezone

from sqlalchemy import BigInteger, Column, DateTime, Integer, String

from paywall_ledger.db.base import Base


class Article(Base):
    __tablename__ = "articles"
    # AUTOINCREMENT в sqlite: id никогда не переиспользуется
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    author = Column(String, nullable=False, index=True)
    price = Column(BigInteger, nullable=False)               # минимальные единицы, 0 = бесплатно
    content_reference = Column(String, nullable=False)       # отдаётся только тем, у кого есть доступ
    title = Column(String, nullable=False, default="")
    category = Column(String, nullable=True)
    published_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
