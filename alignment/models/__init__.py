from alignment.models.assessment import AssessmentRecord
from alignment.models.audit_event import AuditEvent
from alignment.models.participant_response import ParticipantResponseRecord

__all__ = [ "AssessmentRecord", "AuditEvent", "ParticipantResponseRecord" ]
