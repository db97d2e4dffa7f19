"""
Persistence collaborator for the assessment store.

Whole-record semantics: an Assessment is read and written as one unit.
Concurrent writers are detected through the record's version column.
"""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from alignment.core.errors import ConcurrentModificationError
from alignment.models.assessment import AssessmentRecord
from alignment.models.participant_response import ParticipantResponseRecord
from alignment.schemas.assessment import (
    AggregatedDepartmentData,
    AggregatedResponses,
    Assessment,
    Department,
    ParticipantResponse,
    Question,
    QuestionSource,
    ResponseCount,
    SurveyAnswer,
)


def _as_utc(dt: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


def _dump_list(items) -> list:
    return [i.model_dump(mode="json") for i in items]


def record_to_assessment(row: AssessmentRecord) -> Assessment:
    return Assessment(
        id=row.id,
        organization_name=row.organization_name,
        consultant_id=row.consultant_id,
        status=row.status,
        created=_as_utc(row.created),
        locked_at=_as_utc(row.locked_at),
        access_code=row.access_code,
        code_expiration=_as_utc(row.code_expiration),
        code_regenerated_at=_as_utc(row.code_regenerated_at),
        departments=[Department.model_validate(d) for d in row.departments or []],
        questions=[Question.model_validate(q) for q in row.questions or []],
        question_source=QuestionSource.model_validate(row.question_source or {}),
        department_data=[AggregatedDepartmentData.model_validate(d) for d in row.department_data or []],
        management_responses=AggregatedResponses.model_validate(row.management_responses or {}),
        employee_responses=AggregatedResponses.model_validate(row.employee_responses or {}),
        response_count=ResponseCount.model_validate(row.response_count or {}),
        version=row.version,
    )


def _apply(row: AssessmentRecord, a: Assessment) -> None:
    row.organization_name = a.organization_name
    row.consultant_id = a.consultant_id
    row.status = a.status
    row.created = a.created
    row.locked_at = a.locked_at
    row.access_code = a.access_code
    row.code_expiration = a.code_expiration
    row.code_regenerated_at = a.code_regenerated_at
    row.departments = _dump_list(a.departments)
    row.questions = _dump_list(a.questions)
    row.question_source = a.question_source.model_dump(mode="json")
    row.department_data = _dump_list(a.department_data)
    row.management_responses = a.management_responses.model_dump(mode="json")
    row.employee_responses = a.employee_responses.model_dump(mode="json")
    row.response_count = a.response_count.model_dump(mode="json")


def record_to_response(row: ParticipantResponseRecord) -> ParticipantResponse:
    return ParticipantResponse(
        survey_id=row.survey_id,
        participant_id=row.participant_id,
        department=row.department,
        responses=[SurveyAnswer.model_validate(a) for a in row.answers or []],
        current_question_index=row.current_question_index,
        started_at=_as_utc(row.started_at),
        completed_at=_as_utc(row.completed_at),
        role=row.role,
        assessment_id=row.assessment_id,
    )


class AssessmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_assessment(self, assessment_id: str) -> Assessment | None:
        row = self.db.get(AssessmentRecord, assessment_id)
        return record_to_assessment(row) if row else None

    def get_all_assessments(self) -> list[Assessment]:
        rows = self.db.scalars(select(AssessmentRecord).order_by(AssessmentRecord.created.desc())).all()
        return [record_to_assessment(r) for r in rows]

    def get_assessments_for_consultant(self, consultant_id: str) -> list[Assessment]:
        rows = self.db.scalars(
            select(AssessmentRecord)
            .where(AssessmentRecord.consultant_id == consultant_id)
            .order_by(AssessmentRecord.created.desc())
        ).all()
        return [record_to_assessment(r) for r in rows]

    def save_assessment(self, assessment: Assessment) -> Assessment:
        """
        Upsert the whole record. An assessment read at version N can only be
        written while the stored row is still at version N.
        """
        row = self.db.get(AssessmentRecord, assessment.id)
        if row is None:
            row = AssessmentRecord(id=assessment.id)
            _apply(row, assessment)
            self.db.add(row)
        else:
            if assessment.version and row.version != assessment.version:
                raise ConcurrentModificationError(
                    f"Assessment {assessment.id} changed (stored version {row.version}, got {assessment.version})"
                )
            _apply(row, assessment)

        try:
            self.db.flush()
        except StaleDataError as e:
            raise ConcurrentModificationError(f"Assessment {assessment.id} changed concurrently") from e

        return assessment.model_copy(update={"version": row.version})

    def delete_assessment(self, assessment_id: str) -> None:
        self.db.query(ParticipantResponseRecord).filter(
            ParticipantResponseRecord.assessment_id == assessment_id
        ).delete(synchronize_session=False)
        row = self.db.get(AssessmentRecord, assessment_id)
        if row is not None:
            self.db.delete(row)
        self.db.flush()

    def add_participant_response(self, response: ParticipantResponse) -> None:
        self.db.add(
            ParticipantResponseRecord(
                assessment_id=response.assessment_id,
                survey_id=response.survey_id,
                participant_id=response.participant_id,
                role=response.role,
                department=response.department,
                answers=_dump_list(response.responses),
                current_question_index=response.current_question_index,
                started_at=response.started_at,
                completed_at=response.completed_at,
            )
        )
        self.db.flush()

    def get_participant_responses(self, assessment_id: str, role: str | None = None) -> list[ParticipantResponse]:
        q = select(ParticipantResponseRecord).where(ParticipantResponseRecord.assessment_id == assessment_id)
        if role:
            q = q.where(ParticipantResponseRecord.role == role)
        rows = self.db.scalars(q.order_by(ParticipantResponseRecord.id)).all()
        return [record_to_response(r) for r in rows]
