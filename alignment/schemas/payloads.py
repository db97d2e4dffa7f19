from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from alignment.schemas.assessment import (
    AssessmentStatus,
    ParticipantRole,
    QuestionSource,
    ResponseCount,
    SurveyAnswer,
)
from alignment.core.legal_basis import ConsentMethod, ProcessingPurpose


class AssessmentCreate(BaseModel):
    organization_name: str
    departments: list[str] = []
    question_setup: QuestionSource | None = None


class AssessmentSummaryOut(BaseModel):
    id: str
    organization_name: str
    status: AssessmentStatus
    created: datetime
    access_code: str
    department_count: int
    response_count: ResponseCount
    version: int


class StatusUpdate(BaseModel):
    status: AssessmentStatus


class DepartmentCreate(BaseModel):
    name: str | None = None


class QuestionIn(BaseModel):
    id: str = ""  # derived from the text when missing
    text: str
    category: str
    order: int


class QuestionsUpdate(BaseModel):
    questions: list[QuestionIn]


class AccessCodeCheck(BaseModel):
    code: str


class ResponseSubmit(BaseModel):
    survey_id: str | None = None
    participant_id: str = Field(min_length=1)
    department: str = ""
    role: ParticipantRole
    responses: list[SurveyAnswer] = []
    current_question_index: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None


class ResponseAccepted(BaseModel):
    assessment_id: str
    survey_id: str
    response_count: ResponseCount


class AuditEventOut(BaseModel):
    id: str
    actor_id: str | None
    action: str
    entity_type: str
    entity_id: str
    metadata: dict[str, Any] | None
    created_at: datetime


class ConsentSubmit(BaseModel):
    participant_id: str = Field(min_length=1)
    role: ParticipantRole | None = None
    consent_method: ConsentMethod = "explicit_online"
    consent_scope: list[ProcessingPurpose] = [ProcessingPurpose.ORGANIZATIONAL_ASSESSMENT]
    consent_version: str = "1.0"


class ConsentWithdraw(BaseModel):
    participant_id: str = Field(min_length=1)
