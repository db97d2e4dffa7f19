from datetime import timedelta

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from alignment.core.assessment_store import AssessmentStore
from alignment.core.audit import AuditTrail
from alignment.core.config import settings
from alignment.core.legal_basis import LegalBasisTracker
from alignment.core.security import get_current_consultant
from alignment.db.repository import AssessmentRepository
from alignment.db.session import get_db
from alignment.schemas.assessment import Assessment


def build_store(
    db: Session,
    actor_id: str | None = None,
    legal_basis: LegalBasisTracker | None = None,
) -> AssessmentStore:
    ttl = timedelta(days=settings.LEGACY_CODE_TTL_DAYS) if settings.LEGACY_CODE_TTL_DAYS else None
    return AssessmentStore(
        AssessmentRepository(db),
        audit=AuditTrail(db, actor_id),
        legacy_code_ttl=ttl,
        legal_basis=legal_basis,
    )


def get_legal_basis(request: Request) -> LegalBasisTracker:
    """The application-wide tracker created in alignment.main."""
    return request.app.state.legal_basis


def get_store(
    db: Session = Depends(get_db),
    legal_basis: LegalBasisTracker = Depends(get_legal_basis),
) -> AssessmentStore:
    """Store for anonymous participants (code validation, survey submission)."""
    return build_store(db, legal_basis=legal_basis)


def get_consultant_store(
    db: Session = Depends(get_db),
    consultant_id: str = Depends(get_current_consultant),
    legal_basis: LegalBasisTracker = Depends(get_legal_basis),
) -> AssessmentStore:
    return build_store(db, consultant_id, legal_basis)


def assert_consultant_owns(assessment: Assessment, consultant_id: str):
    if assessment.consultant_id != consultant_id:
        raise HTTPException(status_code=403, detail="Only the owning consultant can access this assessment")


def get_owned_assessment(store: AssessmentStore, assessment_id: str, consultant_id: str) -> Assessment:
    assessment = store.require_assessment(assessment_id)
    assert_consultant_owns(assessment, consultant_id)
    return assessment
