import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.orm import Session

from alignment.core.access import get_consultant_store, get_owned_assessment, get_store
from alignment.core.assessment_store import AssessmentStore
from alignment.core.csv_export import export_filename
from alignment.core.insights import ConsultantInsights
from alignment.core.optimistic_lock import assert_version_matches, parse_if_match, set_etag
from alignment.core.security import get_current_consultant
from alignment.db.session import get_db
from alignment.schemas.assessment import (
    AggregatedDepartmentData,
    Assessment,
    Department,
    ParticipantResponse,
    Question,
)
from alignment.schemas.payloads import (
    AssessmentCreate,
    AssessmentSummaryOut,
    DepartmentCreate,
    QuestionsUpdate,
    ResponseAccepted,
    ResponseSubmit,
    StatusUpdate,
)

router = APIRouter(prefix="/assessments", tags=["assessments"])


def to_summary(a: Assessment) -> AssessmentSummaryOut:
    return AssessmentSummaryOut(
        id=a.id,
        organization_name=a.organization_name,
        status=a.status,
        created=a.created,
        access_code=a.access_code,
        department_count=len(a.departments),
        response_count=a.response_count,
        version=a.version,
    )


def _checked(store: AssessmentStore, assessment_id: str, consultant_id: str, if_match: str | None) -> Assessment:
    """Ownership plus the optional If-Match version check, before any write."""
    a = get_owned_assessment(store, assessment_id, consultant_id)
    assert_version_matches(current_version=a.version, if_match_version=parse_if_match(if_match))
    return a


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("", response_model=Assessment, status_code=status.HTTP_201_CREATED)
def create_assessment(
    payload: AssessmentCreate,
    response: Response,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    a = store.create_assessment(
        payload.organization_name,
        consultant_id,
        departments=payload.departments,
        question_setup=payload.question_setup,
    )
    db.commit()
    set_etag(response, a.version)
    return a


@router.get("", response_model=list[AssessmentSummaryOut])
def list_assessments(
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    return [to_summary(a) for a in store.list_assessments(consultant_id)]


@router.get("/{assessment_id}", response_model=Assessment)
def get_assessment(
    assessment_id: str,
    response: Response,
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    a = get_owned_assessment(store, assessment_id, consultant_id)
    set_etag(response, a.version)
    return a


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assessment(
    assessment_id: str,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
    if_match: str | None = Header(default=None, alias="If-Match"),
):
    _checked(store, assessment_id, consultant_id, if_match)
    store.delete_assessment(assessment_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{assessment_id}/status", response_model=Assessment)
def update_status(
    assessment_id: str,
    payload: StatusUpdate,
    response: Response,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
    if_match: str | None = Header(default=None, alias="If-Match"),
):
    _checked(store, assessment_id, consultant_id, if_match)
    a = store.update_assessment_status(assessment_id, payload.status)
    db.commit()
    set_etag(response, a.version)
    return a


@router.post("/{assessment_id}/lock", response_model=Assessment)
def lock_assessment(
    assessment_id: str,
    response: Response,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
    if_match: str | None = Header(default=None, alias="If-Match"),
):
    _checked(store, assessment_id, consultant_id, if_match)
    a = store.lock_assessment_and_expire_code(assessment_id)
    db.commit()
    set_etag(response, a.version)
    return a


@router.post("/{assessment_id}/departments", response_model=Department, status_code=status.HTTP_201_CREATED)
def add_department(
    assessment_id: str,
    payload: DepartmentCreate,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
    if_match: str | None = Header(default=None, alias="If-Match"),
):
    _checked(store, assessment_id, consultant_id, if_match)
    d = store.add_department_to_assessment(assessment_id, payload.name)
    db.commit()
    return d


@router.post("/{assessment_id}/departments/regenerate-codes", response_model=Assessment)
def regenerate_department_codes(
    assessment_id: str,
    response: Response,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
    if_match: str | None = Header(default=None, alias="If-Match"),
):
    _checked(store, assessment_id, consultant_id, if_match)
    a = store.regenerate_department_access_codes(assessment_id)
    db.commit()
    set_etag(response, a.version)
    return a


@router.post("/{assessment_id}/access-code/regenerate", response_model=Assessment)
def regenerate_access_code(
    assessment_id: str,
    response: Response,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
    if_match: str | None = Header(default=None, alias="If-Match"),
):
    _checked(store, assessment_id, consultant_id, if_match)
    a = store.regenerate_access_code(assessment_id)
    db.commit()
    set_etag(response, a.version)
    return a


@router.put("/{assessment_id}/questions", response_model=Assessment)
def update_questions(
    assessment_id: str,
    payload: QuestionsUpdate,
    response: Response,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
    if_match: str | None = Header(default=None, alias="If-Match"),
):
    _checked(store, assessment_id, consultant_id, if_match)
    questions = [Question(**q.model_dump()) for q in payload.questions]
    a = store.update_assessment_questions(assessment_id, questions)
    db.commit()
    set_etag(response, a.version)
    return a


@router.get("/{assessment_id}/departments/data", response_model=list[AggregatedDepartmentData])
def department_data(
    assessment_id: str,
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    return get_owned_assessment(store, assessment_id, consultant_id).department_data


@router.get("/{assessment_id}/insights", response_model=ConsultantInsights | None)
def insights(
    assessment_id: str,
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    get_owned_assessment(store, assessment_id, consultant_id)
    return store.consultant_insights(assessment_id)


@router.get("/{assessment_id}/export/departments.csv")
def export_departments_csv(
    assessment_id: str,
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    a = get_owned_assessment(store, assessment_id, consultant_id)
    return _csv_response(
        store.export_department_csv(assessment_id),
        export_filename(a, "department_performance", now=store.clock()),
    )


@router.get("/{assessment_id}/export/summary.csv")
def export_summary_csv(
    assessment_id: str,
    store: AssessmentStore = Depends(get_consultant_store),
    consultant_id: str = Depends(get_current_consultant),
):
    a = get_owned_assessment(store, assessment_id, consultant_id)
    return _csv_response(
        store.export_summary_csv(assessment_id),
        export_filename(a, "assessment_summary", now=store.clock()),
    )


@router.post("/{assessment_id}/responses", response_model=ResponseAccepted, status_code=status.HTTP_201_CREATED)
def submit_response(
    assessment_id: str,
    payload: ResponseSubmit,
    db: Session = Depends(get_db),
    store: AssessmentStore = Depends(get_store),
):
    """Public: survey participants are not consultants."""
    now = datetime.now(timezone.utc)
    r = ParticipantResponse(
        survey_id=payload.survey_id or uuid.uuid4().hex,
        participant_id=payload.participant_id,
        department=payload.department,
        responses=payload.responses,
        current_question_index=payload.current_question_index,
        started_at=payload.started_at or now,
        completed_at=payload.completed_at,
        role=payload.role,
        assessment_id=assessment_id,
    )
    a = store.add_participant_response(assessment_id, r)
    db.commit()
    return ResponseAccepted(assessment_id=a.id, survey_id=r.survey_id, response_count=a.response_count)
