#!/usr/bin/env python3
"""
Создать таблицы ledger и строку fee_authority (владелец и ставка из .env).
Запуск из корня проекта: python -m scripts.init_db
"""
from paywall_ledger.core.config import settings
from paywall_ledger.db.session import SessionLocal, init_db
from paywall_ledger.services.fee_authority.service import FeeAuthorityService


def main():
    init_db()
    db = SessionLocal()
    try:
        authority = FeeAuthorityService(db).ensure_initialized()
        db.commit()
        print(f"DB: {settings.database_url}")
        print(f"Fee authority owner: {authority.owner}, rate: {authority.fee_rate_ppt}/1000")
    finally:
        db.close()


if __name__ == "__main__":
    main()
