from sqlalchemy.orm import Session
from typing import Any

from alignment.models.audit_event import AuditEvent


def log_event(
    *,
    db: Session,
    actor_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str,
    metadata: dict[str, Any] | None = None,
):
    event = AuditEvent(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=metadata,
    )
    db.add(event)


class AuditTrail:
    """log_event bound to one request's session and actor."""

    def __init__(self, db: Session, actor_id: str | None = None):
        self.db = db
        self.actor_id = actor_id

    def record(self, action: str, entity_id: str, metadata: dict[str, Any] | None = None, *, entity_type: str = "assessment"):
        log_event(
            db=self.db,
            actor_id=self.actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            metadata=metadata,
        )

    def events_for(self, entity_id: str) -> list[AuditEvent]:
        self.db.flush()
        return (
            self.db.query(AuditEvent)
            .filter(AuditEvent.entity_id == entity_id)
            .order_by(AuditEvent.created_at)
            .all()
        )
