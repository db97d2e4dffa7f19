"""
AssessmentStore: the only code path that writes Assessment state.

Every write is read-modify-write of the whole record. Derived data (role
aggregates, per-department aggregates and perception gaps) is rebuilt from
the full response history before each save; nothing is patched in place.
"""
from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable

from alignment.core import access_codes
from alignment.core.aggregation import aggregate_responses
from alignment.core.audit import AuditTrail
from alignment.core.csv_export import (
    generate_assessment_summary_csv,
    generate_department_performance_csv,
)
from alignment.core.department_matching import responses_for_department
from alignment.core.errors import (
    AssessmentLockedError,
    AssessmentNotFoundError,
    AssessmentValidationError,
)
from alignment.core.gap_analysis import analyze_gaps
from alignment.core.insights import ConsultantInsights, generate_consultant_insights
from alignment.core.legal_basis import (
    ConsentRecord,
    DataCategory,
    LegalBasisReport,
    LegalBasisTracker,
    ProcessingPurpose,
    validate_legal_basis_for_processing,
)
from alignment.core.questions import (
    category_lookup,
    default_questions,
    get_template,
    normalize_questions,
    question_id_from_text,
    validate_questions,
)
from alignment.db.repository import AssessmentRepository
from alignment.schemas.assessment import (
    STATUS_ORDER,
    AccessCodeValidation,
    AggregatedDepartmentData,
    Assessment,
    Department,
    ParticipantResponse,
    Question,
    QuestionSource,
    ResponseCount,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _all_codes(assessment: Assessment) -> set[str]:
    codes = {assessment.access_code}
    for d in assessment.departments:
        codes.update(c for c in (d.management_code, d.employee_code) if c)
    return codes


class AssessmentStore:
    def __init__(
        self,
        repository: AssessmentRepository,
        *,
        audit: AuditTrail | None = None,
        clock: Callable[[], datetime] = _utcnow,
        rng: random.Random | None = None,
        legacy_code_ttl: timedelta | None = None,
        legal_basis: LegalBasisTracker | None = None,
    ):
        self.repository = repository
        self.audit = audit
        self.legal_basis = legal_basis if legal_basis is not None else LegalBasisTracker(clock=clock)
        self.clock = clock
        self.rng = rng
        self.legacy_code_ttl = legacy_code_ttl

    # ------------------------------------------------------------------
    # reads

    def get_assessment(self, assessment_id: str) -> Assessment | None:
        return self.repository.get_assessment(assessment_id)

    def require_assessment(self, assessment_id: str) -> Assessment:
        assessment = self.repository.get_assessment(assessment_id)
        if assessment is None:
            raise AssessmentNotFoundError(assessment_id)
        return assessment

    def list_assessments(self, consultant_id: str | None = None) -> list[Assessment]:
        if consultant_id is None:
            return self.repository.get_all_assessments()
        return self.repository.get_assessments_for_consultant(consultant_id)

    def get_participant_responses(self, assessment_id: str, role: str | None = None) -> list[ParticipantResponse]:
        return self.repository.get_participant_responses(assessment_id, role)

    def validate_access_code(self, code: str | None) -> AccessCodeValidation:
        return access_codes.validate_access_code(code, self.repository.get_all_assessments(), now=self.clock())

    def consultant_insights(self, assessment_id: str) -> ConsultantInsights | None:
        return generate_consultant_insights(self.require_assessment(assessment_id).department_data)

    def export_department_csv(self, assessment_id: str) -> str:
        assessment = self.require_assessment(assessment_id)
        return generate_department_performance_csv(assessment, self._insights_or_empty(assessment))

    def export_summary_csv(self, assessment_id: str) -> str:
        assessment = self.require_assessment(assessment_id)
        return generate_assessment_summary_csv(assessment, self._insights_or_empty(assessment), now=self.clock())

    def legal_basis_report(self, assessment_id: str) -> LegalBasisReport:
        self.require_assessment(assessment_id)
        return self.legal_basis.report(assessment_id)

    # ------------------------------------------------------------------
    # writes

    def create_assessment(
        self,
        organization_name: str,
        consultant_id: str,
        *,
        departments: list[str] | None = None,
        question_setup: QuestionSource | None = None,
        assessment_id: str | None = None,
        access_code: str | None = None,
    ) -> Assessment:
        """`access_code` pins the legacy code (demo data); it must be a well-formed legacy code."""
        if not organization_name or not organization_name.strip():
            raise AssessmentValidationError("Organization name is required")
        assessment_id = assessment_id or uuid.uuid4().hex
        if self.repository.get_assessment(assessment_id) is not None:
            raise AssessmentValidationError(f"Assessment {assessment_id} already exists")
        if access_code is not None:
            access_code = access_code.strip().upper()
            if not access_codes.LEGACY_CODE_RE.match(access_code):
                raise AssessmentValidationError(access_codes.INVALID_FORMAT)

        setup = question_setup or QuestionSource()
        now = self.clock()
        org = organization_name.strip()

        assessment = Assessment(
            id=assessment_id,
            organization_name=org,
            consultant_id=consultant_id,
            status="collecting",
            created=now,
            access_code=access_code or access_codes.generate_legacy_code(org, now=now, rng=self.rng),
            code_expiration=now + self.legacy_code_ttl if self.legacy_code_ttl else None,
            questions=self._resolve_questions(setup),
            question_source=setup,
        )
        for name in departments or []:
            assessment.departments.append(self._new_department(assessment, name, now))

        saved = self.repository.save_assessment(self._rebuild(assessment))
        self._record("ASSESSMENT_CREATED", saved.id, {
            "organization_name": saved.organization_name,
            "departments": [d.id for d in saved.departments],
            "question_source": setup.source,
        })
        logger.info("created assessment %s (%d departments)", saved.id, len(saved.departments))
        return saved

    def delete_assessment(self, assessment_id: str) -> None:
        self.require_assessment(assessment_id)
        self.repository.delete_assessment(assessment_id)
        self.legal_basis.forget_assessment(assessment_id)
        self._record("ASSESSMENT_DELETED", assessment_id)
        logger.info("deleted assessment %s", assessment_id)

    def add_participant_response(self, assessment_id: str, response: ParticipantResponse) -> Assessment:
        assessment = self.require_assessment(assessment_id)
        if assessment.status == "locked":
            raise AssessmentLockedError("Cannot submit responses to locked assessment")

        if response.assessment_id != assessment_id:
            response = response.model_copy(update={"assessment_id": assessment_id})
        self.repository.add_participant_response(response)

        saved = self.update_aggregated_data(assessment_id)
        basis = validate_legal_basis_for_processing(
            response.role, ProcessingPurpose.ORGANIZATIONAL_ASSESSMENT, DataCategory.SURVEY_RESPONSES
        )
        self.legal_basis.track_event(
            response.participant_id,
            event_type="data_collection",
            details=f"{response.role} survey response collected",
            legal_basis=basis.recommended_basis,
            data_category=DataCategory.SURVEY_RESPONSES,
            purpose=ProcessingPurpose.ORGANIZATIONAL_ASSESSMENT,
            assessment_id=assessment_id,
            participant_role=response.role,
        )
        self._record("RESPONSE_SUBMITTED", assessment_id, {
            "role": response.role,
            "department": response.department,
            "answers": len(response.responses),
        })
        return saved

    def record_consent(self, assessment_id: str, record: ConsentRecord) -> ConsentRecord:
        assessment = self.require_assessment(assessment_id)
        if assessment.status == "locked":
            raise AssessmentLockedError("Cannot record consent for locked assessment")
        return self.legal_basis.record_consent(record.model_copy(update={"assessment_id": assessment_id}))

    def withdraw_consent(self, assessment_id: str, participant_id: str) -> None:
        self.require_assessment(assessment_id)
        if not self.legal_basis.withdraw_consent(participant_id, assessment_id):
            raise AssessmentValidationError(f"No consent on record for participant {participant_id}")
        logger.info("consent withdrawn for assessment %s", assessment_id)

    def update_aggregated_data(self, assessment_id: str) -> Assessment:
        assessment = self.require_assessment(assessment_id)
        return self.repository.save_assessment(self._rebuild(assessment))

    def add_department_to_assessment(self, assessment_id: str, name: str | None) -> Department:
        assessment = self.require_assessment(assessment_id)
        if assessment.status == "locked":
            raise AssessmentLockedError("Cannot add department to locked assessment")

        department = self._new_department(assessment, name, self.clock())
        assessment.departments.append(department)
        self.repository.save_assessment(self._rebuild(assessment))

        self._record("DEPARTMENT_ADDED", assessment_id, {"department_id": department.id, "name": department.name})
        logger.info("added department %s to assessment %s", department.id, assessment_id)
        return department

    def regenerate_department_access_codes(self, assessment_id: str) -> Assessment:
        assessment = self.require_assessment(assessment_id)
        if assessment.status == "locked":
            raise AssessmentLockedError("Cannot regenerate codes for locked assessment")

        now = self.clock()
        # old codes stay in `taken`, so every new code differs from the one it replaces
        taken = _all_codes(assessment)
        for dept in assessment.departments:
            dept.management_code = access_codes.generate_unique_department_code(
                assessment.organization_name, "management", dept.id, taken, now=now
            )
            taken.add(dept.management_code)
            dept.employee_code = access_codes.generate_unique_department_code(
                assessment.organization_name, "employee", dept.id, taken, now=now
            )
            taken.add(dept.employee_code)

        saved = self.repository.save_assessment(self._rebuild(assessment))
        self._record("DEPARTMENT_CODES_REGENERATED", assessment_id, {"departments": len(saved.departments)})
        return saved

    def regenerate_access_code(self, assessment_id: str) -> Assessment:
        assessment = self.require_assessment(assessment_id)
        if assessment.status == "locked":
            raise AssessmentLockedError("Cannot regenerate codes for locked assessment")

        now = self.clock()
        assessment.access_code = access_codes.generate_legacy_code(
            assessment.organization_name, now=now, rng=self.rng, avoid=assessment.access_code
        )
        assessment.code_regenerated_at = now
        assessment.code_expiration = now + self.legacy_code_ttl if self.legacy_code_ttl else None

        saved = self.repository.save_assessment(assessment)
        self._record("ACCESS_CODE_REGENERATED", assessment_id)
        return saved

    def update_assessment_status(self, assessment_id: str, status: str) -> Assessment:
        if status not in STATUS_ORDER:
            raise AssessmentValidationError(f"Unknown assessment status: {status}")

        assessment = self.require_assessment(assessment_id)
        current = assessment.status
        if status == current:
            return assessment
        if current == "locked":
            raise AssessmentLockedError(f"Cannot change status from {current} to {status}")
        if STATUS_ORDER.index(status) < STATUS_ORDER.index(current):
            raise AssessmentValidationError(f"Cannot change status from {current} to {status}")

        assessment.status = status
        if status == "locked":
            now = self.clock()
            assessment.locked_at = now
            assessment.code_expiration = now

        saved = self.repository.save_assessment(assessment)
        self._record("STATUS_CHANGED", assessment_id, {"from": current, "to": status})
        logger.info("assessment %s: %s -> %s", assessment_id, current, status)
        return saved

    def lock_assessment_and_expire_code(self, assessment_id: str) -> Assessment:
        return self.update_assessment_status(assessment_id, "locked")

    def update_assessment_questions(self, assessment_id: str, questions: list[Question]) -> Assessment:
        assessment = self.require_assessment(assessment_id)
        if assessment.status == "locked":
            raise AssessmentLockedError("Cannot change questions of locked assessment")

        filled: list[Question] = []
        for q in questions:
            if not q.id:
                q = q.model_copy(update={"id": question_id_from_text(q.text, [x.id for x in filled] + [x.id for x in questions])})
            filled.append(q)

        errors = validate_questions(filled)
        if errors:
            raise AssessmentValidationError(f"Invalid questions: {', '.join(errors)}")

        assessment.questions = normalize_questions(filled)
        saved = self.repository.save_assessment(self._rebuild(assessment))
        self._record("QUESTIONS_UPDATED", assessment_id, {"questions": len(saved.questions)})
        return saved

    # ------------------------------------------------------------------
    # internals

    def _rebuild(self, assessment: Assessment) -> Assessment:
        responses = self.repository.get_participant_responses(assessment.id)
        lookup = category_lookup(assessment.questions)

        management = [r for r in responses if r.role == "management"]
        employee = [r for r in responses if r.role == "employee"]
        assessment.management_responses = aggregate_responses(management, lookup)
        assessment.employee_responses = aggregate_responses(employee, lookup)
        assessment.response_count = ResponseCount(management=len(management), employee=len(employee))

        department_data = []
        for dept in assessment.departments:
            dept_mgmt = responses_for_department(management, dept, assessment.departments)
            dept_emp = responses_for_department(employee, dept, assessment.departments)
            mgmt_agg = aggregate_responses(dept_mgmt, lookup)
            emp_agg = aggregate_responses(dept_emp, lookup)
            department_data.append(
                AggregatedDepartmentData(
                    department=dept.id,
                    department_name=dept.name,
                    management_responses=mgmt_agg,
                    employee_responses=emp_agg,
                    response_count=ResponseCount(management=len(dept_mgmt), employee=len(dept_emp)),
                    perception_gaps=analyze_gaps(mgmt_agg, emp_agg),
                )
            )
        assessment.department_data = department_data
        return assessment

    def _new_department(self, assessment: Assessment, name: str | None, now: datetime) -> Department:
        if name is None or not name.strip():
            raise AssessmentValidationError("Department name is required")
        name = name.strip()
        if any(d.name.strip().lower() == name.lower() for d in assessment.departments):
            raise AssessmentValidationError(f'Department "{name}" already exists in this assessment')

        base = access_codes.slugify_department_name(name) or "department"
        existing_ids = {d.id for d in assessment.departments}
        dept_id, n = base, 2
        while dept_id in existing_ids:
            dept_id = f"{base}-{n}"
            n += 1

        taken = _all_codes(assessment)
        mgmt = access_codes.generate_unique_department_code(
            assessment.organization_name, "management", dept_id, taken, now=now
        )
        emp = access_codes.generate_unique_department_code(
            assessment.organization_name, "employee", dept_id, taken | {mgmt}, now=now
        )
        return Department(id=dept_id, name=name, management_code=mgmt, employee_code=emp)

    def _resolve_questions(self, setup: QuestionSource) -> list[Question]:
        if setup.source == "default":
            return default_questions()
        if setup.source == "blank":
            return []
        if setup.source == "template":
            template = get_template(setup.template_id or "")
            if template is None:
                raise AssessmentValidationError(f"Unknown question template: {setup.template_id}")
            return [q.model_copy() for q in template.questions]
        # copy-assessment
        if not setup.source_assessment_id:
            raise AssessmentValidationError("Source assessment is required to copy questions")
        source = self.require_assessment(setup.source_assessment_id)
        return [q.model_copy() for q in source.questions]

    def _insights_or_empty(self, assessment: Assessment) -> ConsultantInsights:
        return generate_consultant_insights(assessment.department_data) or ConsultantInsights(
            department_ranking=[],
            organizational_health=0,
            total_departments=0,
            critical_departments=0,
            needs_attention_departments=0,
        )

    def _record(self, action: str, assessment_id: str, metadata: dict | None = None) -> None:
        if self.audit is not None:
            self.audit.record(action, assessment_id, metadata)
