from typing import Any

from sqlalchemy.orm import Session

from paywall_ledger.models.audit_log import AuditLog


class AuditService:
    """Журнал мутаций. Только flush: коммит — в той же транзакции, что и сама операция."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def log(
        self,
        actor_id: str | None,
        action: str,
        entity_type: str,
        entity_id: str | None,
        payload: dict[str, Any] | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            payload=payload or {},
        )
        self.db.add(entry)
        self.db.flush()
        return entry
