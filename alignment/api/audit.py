from fastapi import APIRouter, Depends, Query

from alignment.core.access import get_consultant_store, get_owned_assessment
from alignment.core.assessment_store import AssessmentStore
from alignment.core.security import get_current_consultant
from alignment.schemas.payloads import AuditEventOut

router = APIRouter(prefix="/assessments", tags=["audit"])


@router.get("/{assessment_id}/audit", response_model=list[AuditEventOut])
def list_audit_events(
    assessment_id: str,
    action: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    get_owned_assessment(store, assessment_id, consultant_id)

    rows = store.audit.events_for(assessment_id)
    if action:
        rows = [r for r in rows if r.action == action]

    return [
        AuditEventOut(
            id=str(r.id),
            actor_id=r.actor_id,
            action=r.action,
            entity_type=r.entity_type,
            entity_id=str(r.entity_id),
            metadata=r.event_metadata,
            created_at=r.created_at,
        )
        for r in rows[:limit]
    ]
