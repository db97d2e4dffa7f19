"""
GDPR legal-basis tracking for survey participation.

One LegalBasisTracker lives for the lifetime of the application (see
alignment.main); it is handed to each request's AssessmentStore. State is
in memory only and reset() clears it.
"""
from __future__ import annotations

import logging
import threading
from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class LegalBasis(str, Enum):
    CONSENT = "consent"
    LEGITIMATE_INTEREST = "legitimate_interest"
    CONTRACT = "contract"
    LEGAL_OBLIGATION = "legal_obligation"
    VITAL_INTERESTS = "vital_interests"
    PUBLIC_TASK = "public_task"


class DataCategory(str, Enum):
    SURVEY_RESPONSES = "survey_responses"
    PARTICIPANT_IDENTIFIERS = "participant_identifiers"
    TECHNICAL_DATA = "technical_data"
    ORGANIZATIONAL_DATA = "organizational_data"
    USAGE_ANALYTICS = "usage_analytics"


class ProcessingPurpose(str, Enum):
    ORGANIZATIONAL_ASSESSMENT = "organizational_assessment"
    STRATEGIC_INSIGHTS = "strategic_insights"
    PERFORMANCE_ANALYTICS = "performance_analytics"
    SYSTEM_ADMINISTRATION = "system_administration"
    LEGAL_COMPLIANCE = "legal_compliance"


LegalBasisEventType = Literal[
    "data_collection",
    "processing_start",
    "consent_given",
    "consent_withdrawn",
    "purpose_change",
    "basis_change",
]
ConsentMethod = Literal["explicit_online", "opt_in_form", "verbal_recorded", "implicit_participation"]

HIGH_WITHDRAWAL_RATE = 0.1

WITHDRAWAL_ISSUE = "High consent withdrawal rate may indicate consent fatigue or insufficient transparency"
EMPLOYEE_CONSENT_RECOMMENDATION = (
    "Consider using legitimate interest for employee data processing to avoid consent validity issues"
)
STANDING_RECOMMENDATIONS = [
    "Implement regular legal basis reviews to ensure ongoing compliance",
    "Provide clear data subject rights information at point of collection",
]


class LegalBasisEvent(BaseModel):
    session_id: str
    assessment_id: str | None = None
    participant_role: str | None = None
    timestamp: datetime
    event_type: LegalBasisEventType
    details: str
    legal_basis: LegalBasis
    data_category: DataCategory
    purpose: ProcessingPurpose


class ConsentRecord(BaseModel):
    participant_id: str = Field(min_length=1)
    assessment_id: str | None = None
    participant_role: str | None = None
    consent_timestamp: datetime | None = None
    consent_method: ConsentMethod = "explicit_online"
    consent_scope: list[ProcessingPurpose] = []
    consent_version: str = "1.0"


class LegalBasisValidation(BaseModel):
    recommended_basis: LegalBasis
    is_valid: bool
    reasoning: str
    requires_balancing_test: bool
    additional_safeguards: list[str]


class LegalBasisReport(BaseModel):
    assessment_id: str
    total_participants: int
    legal_basis_breakdown: dict[str, int]
    consent_records_count: int
    compliance_issues: list[str]
    recommendations: list[str]
    generated_at: datetime


def validate_legal_basis_for_processing(
    participant_role: str,
    purpose: ProcessingPurpose,
    data_category: DataCategory,
) -> LegalBasisValidation:
    """
    Recommended legal basis for processing one participant's data.

    Employees are steered to legitimate interest: the employment relationship
    keeps their consent from being freely given (GDPR Recital 43).
    """
    if participant_role == "employee" and purpose == ProcessingPurpose.ORGANIZATIONAL_ASSESSMENT:
        return LegalBasisValidation(
            recommended_basis=LegalBasis.LEGITIMATE_INTEREST,
            is_valid=True,
            reasoning=(
                "Legitimate interest preferred for employee organizational assessments "
                "due to employment relationship constraints on free consent"
            ),
            requires_balancing_test=True,
            additional_safeguards=[
                "Anonymization of individual responses",
                "Clear communication of survey purpose",
                "No adverse consequences for participation/non-participation",
            ],
        )
    if participant_role == "management" and purpose == ProcessingPurpose.STRATEGIC_INSIGHTS:
        return LegalBasisValidation(
            recommended_basis=LegalBasis.CONSENT,
            is_valid=True,
            reasoning="Management can freely consent to strategic insights processing",
            requires_balancing_test=False,
            additional_safeguards=["Clear withdrawal mechanism", "Specific consent for each purpose"],
        )
    return LegalBasisValidation(
        recommended_basis=LegalBasis.LEGITIMATE_INTEREST,
        is_valid=True,
        reasoning="Default to legitimate interest with proper safeguards",
        requires_balancing_test=True,
        additional_safeguards=["Data minimization", "Purpose limitation", "Transparency measures"],
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LegalBasisTracker:
    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.clock = clock
        self._lock = threading.Lock()
        self._events: dict[str, list[LegalBasisEvent]] = {}
        self._consents: dict[tuple[str | None, str], ConsentRecord] = {}

    def reset(self) -> None:
        with self._lock:
            self._events.clear()
            self._consents.clear()

    def track_event(
        self,
        session_id: str,
        *,
        event_type: LegalBasisEventType,
        details: str,
        legal_basis: LegalBasis,
        data_category: DataCategory,
        purpose: ProcessingPurpose,
        assessment_id: str | None = None,
        participant_role: str | None = None,
    ) -> LegalBasisEvent:
        event = LegalBasisEvent(
            session_id=session_id,
            assessment_id=assessment_id,
            participant_role=participant_role,
            timestamp=self.clock(),
            event_type=event_type,
            details=details,
            legal_basis=legal_basis,
            data_category=data_category,
            purpose=purpose,
        )
        with self._lock:
            self._events.setdefault(session_id, []).append(event)
        logger.debug("legal basis %s: %s (%s)", event_type, legal_basis.value, assessment_id)
        return event

    def record_consent(self, record: ConsentRecord) -> ConsentRecord:
        """Stores the consent (latest per participant and assessment) and tracks it as an event."""
        if record.consent_timestamp is None:
            record = record.model_copy(update={"consent_timestamp": self.clock()})
        with self._lock:
            self._consents[(record.assessment_id, record.participant_id)] = record

        self.track_event(
            record.participant_id,
            event_type="consent_given",
            details=f"Consent given via {record.consent_method}",
            legal_basis=LegalBasis.CONSENT,
            data_category=DataCategory.SURVEY_RESPONSES,
            purpose=record.consent_scope[0] if record.consent_scope else ProcessingPurpose.ORGANIZATIONAL_ASSESSMENT,
            assessment_id=record.assessment_id,
            participant_role=record.participant_role,
        )
        return record

    def withdraw_consent(self, participant_id: str, assessment_id: str | None = None) -> bool:
        """Drops the stored consent and tracks the withdrawal. False if none was on record."""
        with self._lock:
            record = self._consents.pop((assessment_id, participant_id), None)
        if record is None:
            return False

        self.track_event(
            participant_id,
            event_type="consent_withdrawn",
            details=f"Consent withdrawn (given via {record.consent_method})",
            legal_basis=LegalBasis.CONSENT,
            data_category=DataCategory.SURVEY_RESPONSES,
            purpose=record.consent_scope[0] if record.consent_scope else ProcessingPurpose.ORGANIZATIONAL_ASSESSMENT,
            assessment_id=assessment_id,
            participant_role=record.participant_role,
        )
        return True

    def events_for_session(self, session_id: str) -> list[LegalBasisEvent]:
        with self._lock:
            return list(self._events.get(session_id, []))

    def consent_for(self, participant_id: str, assessment_id: str | None = None) -> ConsentRecord | None:
        with self._lock:
            return self._consents.get((assessment_id, participant_id))

    def forget_assessment(self, assessment_id: str) -> None:
        with self._lock:
            for session_id in list(self._events):
                kept = [e for e in self._events[session_id] if e.assessment_id != assessment_id]
                if kept:
                    self._events[session_id] = kept
                else:
                    del self._events[session_id]
            for key in [k for k in self._consents if k[0] == assessment_id]:
                del self._consents[key]

    def report(self, assessment_id: str) -> LegalBasisReport:
        with self._lock:
            events = [e for evs in self._events.values() for e in evs if e.assessment_id == assessment_id]
            consents = [c for (aid, _), c in self._consents.items() if aid == assessment_id]

        participants = {e.session_id for e in events} | {c.participant_id for c in consents}
        breakdown = Counter(e.legal_basis.value for e in events)

        issues = []
        withdrawn = sum(1 for e in events if e.event_type == "consent_withdrawn")
        given = sum(1 for e in events if e.event_type == "consent_given")
        if withdrawn > given * HIGH_WITHDRAWAL_RATE:
            issues.append(WITHDRAWAL_ISSUE)

        recommendations = []
        if any(e.participant_role == "employee" and e.legal_basis == LegalBasis.CONSENT for e in events):
            recommendations.append(EMPLOYEE_CONSENT_RECOMMENDATION)
        recommendations.extend(STANDING_RECOMMENDATIONS)

        return LegalBasisReport(
            assessment_id=assessment_id,
            total_participants=len(participants),
            legal_basis_breakdown=dict(breakdown),
            consent_records_count=len(consents),
            compliance_issues=issues,
            recommendations=recommendations,
            generated_at=self.clock(),
        )
