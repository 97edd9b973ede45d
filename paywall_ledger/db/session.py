from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from paywall_ledger.core.config import settings


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # sqlite: без пула соединений и с доступом из потоков FastAPI
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_recycle=1800,  # recycle connections every 30 min (avoid stale)
        connect_args={"connect_timeout": 5},
    )


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def init_db(bind: Engine | None = None) -> None:
    """Create all ledger tables (idempotent)."""
    from paywall_ledger.db.base import Base
    import paywall_ledger.models  # noqa: F401  register tables

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
