from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ParticipantRole = Literal["management", "employee"]
AssessmentStatus = Literal["collecting", "ready", "locked"]
GapDirection = Literal["positive", "negative", "neutral"]
Significance = Literal["high", "medium", "low"]
QuestionSourceKind = Literal["default", "template", "copy-assessment", "blank"]

STATUS_ORDER: tuple[str, ...] = ("collecting", "ready", "locked")


class Question(BaseModel):
    id: str
    text: str
    category: str
    order: int


class QuestionSource(BaseModel):
    source: QuestionSourceKind = "default"
    template_id: str | None = None
    source_assessment_id: str | None = None


class Department(BaseModel):
    id: str
    name: str
    management_code: str = ""
    employee_code: str = ""

    def code_for(self, role: str) -> str:
        return self.management_code if role == "management" else self.employee_code


class SurveyAnswer(BaseModel):
    question_id: str
    score: int | None = Field(default=None, ge=1, le=10)  # None = skipped


class ParticipantResponse(BaseModel):
    """One participant's survey session. Appended once, never edited."""
    survey_id: str
    participant_id: str
    department: str = ""
    responses: list[SurveyAnswer] = []
    current_question_index: int = 0
    started_at: datetime
    completed_at: datetime | None = None
    role: ParticipantRole
    assessment_id: str


class CategoryAverage(BaseModel):
    category: str
    average: float
    responses: int


class AggregatedResponses(BaseModel):
    category_averages: list[CategoryAverage] = []
    overall_average: float = 0.0
    response_count: int = 0


class ResponseCount(BaseModel):
    management: int = 0
    employee: int = 0


class CategoryGap(BaseModel):
    category: str
    management_score: float
    employee_score: float
    gap: float  # management - employee
    gap_direction: GapDirection
    significance: Significance


class AggregatedDepartmentData(BaseModel):
    department: str
    department_name: str
    management_responses: AggregatedResponses = AggregatedResponses()
    employee_responses: AggregatedResponses = AggregatedResponses()
    response_count: ResponseCount = ResponseCount()
    perception_gaps: list[CategoryGap] = []


class Assessment(BaseModel):
    id: str
    organization_name: str
    consultant_id: str
    status: AssessmentStatus = "collecting"
    created: datetime
    locked_at: datetime | None = None

    # Legacy organization-wide access code
    access_code: str
    code_expiration: datetime | None = None
    code_regenerated_at: datetime | None = None

    departments: list[Department] = []
    questions: list[Question] = []
    question_source: QuestionSource = QuestionSource()

    # Derived, rebuilt on every write
    department_data: list[AggregatedDepartmentData] = []
    management_responses: AggregatedResponses = AggregatedResponses()
    employee_responses: AggregatedResponses = AggregatedResponses()
    response_count: ResponseCount = ResponseCount()

    # Optimistic locking; 0 = never persisted
    version: int = 0


class ParsedAccessCode(BaseModel):
    is_valid: bool
    role: ParticipantRole | None = None
    department: str | None = None
    org_name_guess: str | None = None
    errors: list[str] = []


class AccessCodeValidation(BaseModel):
    code: str
    assessment_id: str = ""
    organization_name: str = ""
    is_valid: bool = False
    is_expired: bool = False
    expires_at: datetime | None = None
    role: ParticipantRole | None = None
    department: str | None = None
    department_id: str | None = None
