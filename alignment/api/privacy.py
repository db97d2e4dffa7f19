from fastapi import APIRouter, Depends, status
from fastapi.responses import Response

from alignment.core.access import get_consultant_store, get_owned_assessment, get_store
from alignment.core.assessment_store import AssessmentStore
from alignment.core.legal_basis import ConsentRecord, LegalBasisReport
from alignment.core.security import get_current_consultant
from alignment.schemas.payloads import ConsentSubmit, ConsentWithdraw

router = APIRouter(prefix="/assessments", tags=["privacy"])


@router.post("/{assessment_id}/consent", response_model=ConsentRecord, status_code=status.HTTP_201_CREATED)
def record_consent(
    assessment_id: str,
    payload: ConsentSubmit,
    store: AssessmentStore = Depends(get_store),
):
    """Public: participants give consent before answering."""
    return store.record_consent(
        assessment_id,
        ConsentRecord(
            participant_id=payload.participant_id,
            participant_role=payload.role,
            consent_method=payload.consent_method,
            consent_scope=payload.consent_scope,
            consent_version=payload.consent_version,
        ),
    )


@router.post("/{assessment_id}/consent/withdraw", status_code=status.HTTP_204_NO_CONTENT)
def withdraw_consent(
    assessment_id: str,
    payload: ConsentWithdraw,
    store: AssessmentStore = Depends(get_store),
):
    store.withdraw_consent(assessment_id, payload.participant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{assessment_id}/legal-basis", response_model=LegalBasisReport)
def legal_basis_report(
    assessment_id: str,
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    get_owned_assessment(store, assessment_id, consultant_id)
    return store.legal_basis_report(assessment_id)
