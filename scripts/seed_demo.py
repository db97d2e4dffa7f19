#!/usr/bin/env python3
"""
Seed the demo assessment used for walkthroughs.

Creates "Demo Organization" (id demo-org) with four departments, the fixed
legacy access code DEMO-2025-STRATEGY and a handful of completed surveys per
department, so the consultant dashboard, insights and CSV exports have data.

Usage:
    python scripts/seed_demo.py
    python scripts/seed_demo.py --reset
"""

import argparse
from datetime import datetime, timedelta, timezone

from dotenv import load_dotenv

load_dotenv()

from alignment.core.access import build_store
from alignment.db.session import SessionLocal
from alignment.schemas.assessment import ParticipantResponse, SurveyAnswer

DEMO_ID = "demo-org"
DEMO_ORG = "Demo Organization"
DEMO_CONSULTANT = "demo@consultant.com"
DEMO_ACCESS_CODE = "DEMO-2025-STRATEGY"
DEMO_DEPARTMENTS = ["Engineering", "Sales", "Marketing", "Operations"]

# department id -> (management base score, employee base score)
SCORE_PROFILES = {
    "engineering": (8, 7),
    "sales": (9, 5),
    "marketing": (7, 6),
    "operations": (6, 4),
}
PARTICIPANTS_PER_ROLE = 2


def _clamp(score: int) -> int:
    return max(1, min(10, score))


def _answers(question_ids: list[str], base: int, participant: int) -> list[SurveyAnswer]:
    # small deterministic spread so category averages differ
    return [
        SurveyAnswer(question_id=qid, score=_clamp(base + ((i + participant) % 3) - 1))
        for i, qid in enumerate(question_ids)
    ]


def seed(reset: bool = False):
    db = SessionLocal()
    try:
        store = build_store(db, DEMO_CONSULTANT)

        existing = store.get_assessment(DEMO_ID)
        if existing and not reset:
            print(f"Demo assessment already exists (access code {existing.access_code}); use --reset to recreate")
            return
        if existing:
            store.delete_assessment(DEMO_ID)
            db.commit()

        assessment = store.create_assessment(
            DEMO_ORG,
            DEMO_CONSULTANT,
            departments=DEMO_DEPARTMENTS,
            assessment_id=DEMO_ID,
            access_code=DEMO_ACCESS_CODE,
        )
        question_ids = [q.id for q in assessment.questions]
        started = datetime.now(timezone.utc) - timedelta(days=1)

        for dept in assessment.departments:
            mgmt_base, emp_base = SCORE_PROFILES[dept.id]
            for role, base in (("management", mgmt_base), ("employee", emp_base)):
                for n in range(1, PARTICIPANTS_PER_ROLE + 1):
                    store.add_participant_response(
                        DEMO_ID,
                        ParticipantResponse(
                            survey_id=f"{dept.id}-{role}-demo-{n}",
                            participant_id=f"{dept.id}-{role}-participant-{n}",
                            department=dept.id,
                            responses=_answers(question_ids, base, n),
                            current_question_index=len(question_ids),
                            started_at=started,
                            completed_at=started + timedelta(minutes=10),
                            role=role,
                            assessment_id=DEMO_ID,
                        ),
                    )

        db.commit()
        final = store.require_assessment(DEMO_ID)
        print(f"Seeded {final.organization_name} ({DEMO_ID})")
        print(f"  legacy access code: {final.access_code}")
        for dept in final.departments:
            print(f"  {dept.name:<12} MGMT {dept.management_code}  EMP {dept.employee_code}")
        print(f"  responses: {final.response_count.management} management, {final.response_count.employee} employee")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(description="Seed the demo assessment")
    parser.add_argument("--reset", action="store_true", help="Delete and recreate the demo assessment")
    args = parser.parse_args()
    seed(reset=args.reset)


if __name__ == "__main__":
    main()
