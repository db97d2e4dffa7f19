from datetime import datetime, timezone

from alignment.schemas.assessment import ParticipantResponse, SurveyAnswer

CONSULTANT = {"X-Consultant-Id": "consultant-1"}
OTHER_CONSULTANT = {"X-Consultant-Id": "consultant-2"}

_counter = 0


def make_response(
    assessment_id: str,
    role: str,
    scores: dict[str, int | None],
    department: str = "",
    participant_id: str | None = None,
) -> ParticipantResponse:
    global _counter
    _counter += 1
    return ParticipantResponse(
        survey_id=f"survey-{_counter}",
        participant_id=participant_id or f"participant-{_counter}",
        department=department,
        responses=[SurveyAnswer(question_id=qid, score=s) for qid, s in scores.items()],
        current_question_index=len(scores),
        started_at=datetime(2025, 3, 14, 10, 0, tzinfo=timezone.utc),
        completed_at=datetime(2025, 3, 14, 10, 12, tzinfo=timezone.utc),
        role=role,
        assessment_id=assessment_id,
    )


def response_payload(role: str, scores: dict[str, int | None], department: str = "", participant_id: str = "p-1") -> dict:
    return {
        "participant_id": participant_id,
        "department": department,
        "role": role,
        "responses": [{"question_id": qid, "score": s} for qid, s in scores.items()],
    }


def create_assessment(client, organization_name: str = "Acme Corp", departments: list[str] | None = None, headers=None) -> dict:
    r = client.post(
        "/assessments",
        json={"organization_name": organization_name, "departments": departments or []},
        headers=headers or CONSULTANT,
    )
    assert r.status_code == 201, r.text
    return r.json()
