import re

from alignment.db.repository import AssessmentRepository
from tests.helpers import CONSULTANT, OTHER_CONSULTANT, create_assessment, response_payload


def test_consultant_header_required(client):
    r = client.post("/assessments", json={"organization_name": "Acme Corp"})
    assert r.status_code == 401

    r = client.get("/assessments")
    assert r.status_code == 401


def test_create_and_read_assessment(client):
    a = create_assessment(client, departments=["Sales", "Human Resources & Benefits"])

    assert a["organization_name"] == "Acme Corp"
    assert a["consultant_id"] == "consultant-1"
    assert a["status"] == "collecting"
    assert [d["id"] for d in a["departments"]] == ["sales", "human-resources-benefits"]
    assert re.match(r"^ACMECORP-MGMT-SAL\d{4}$", a["departments"][0]["management_code"])
    assert len(a["questions"]) == 8

    r = client.get(f"/assessments/{a['id']}", headers=CONSULTANT)
    assert r.status_code == 200
    assert r.headers["ETag"] == f'"{a["version"]}"'
    assert r.json()["access_code"] == a["access_code"]


def test_department_data_available_right_after_create(client):
    a = create_assessment(client, departments=["Sales", "Engineering"])

    r = client.get(f"/assessments/{a['id']}/departments/data", headers=CONSULTANT)
    assert r.status_code == 200
    body = r.json()
    assert [d["department"] for d in body] == ["sales", "engineering"]
    assert all(d["response_count"] == {"management": 0, "employee": 0} for d in body)

    r = client.get(f"/assessments/{a['id']}/insights", headers=CONSULTANT)
    assert r.json()["total_departments"] == 2


def test_create_validation_error(client):
    r = client.post("/assessments", json={"organization_name": "  "}, headers=CONSULTANT)
    assert r.status_code == 400
    assert r.json()["detail"] == "Organization name is required"


def test_list_only_own_assessments(client):
    mine = create_assessment(client)
    create_assessment(client, "Beta Inc", headers=OTHER_CONSULTANT)

    r = client.get("/assessments", headers=CONSULTANT)
    assert r.status_code == 200
    body = r.json()
    assert [x["id"] for x in body] == [mine["id"]]
    assert body[0]["department_count"] == 0
    assert body[0]["response_count"] == {"management": 0, "employee": 0}


def test_other_consultant_forbidden(client):
    a = create_assessment(client)
    assert client.get(f"/assessments/{a['id']}", headers=OTHER_CONSULTANT).status_code == 403
    assert client.post(f"/assessments/{a['id']}/lock", headers=OTHER_CONSULTANT).status_code == 403
    assert client.delete(f"/assessments/{a['id']}", headers=OTHER_CONSULTANT).status_code == 403


def test_missing_assessment_404(client):
    r = client.get("/assessments/nope", headers=CONSULTANT)
    assert r.status_code == 404
    assert r.json()["detail"] == "Assessment not found: nope"


def test_add_department_errors(client):
    a = create_assessment(client, departments=["Sales"])
    url = f"/assessments/{a['id']}/departments"

    r = client.post(url, json={"name": "Marketing"}, headers=CONSULTANT)
    assert r.status_code == 201
    assert r.json()["id"] == "marketing"

    r = client.post(url, json={"name": "SALES"}, headers=CONSULTANT)
    assert r.status_code == 400
    assert r.json()["detail"] == 'Department "SALES" already exists in this assessment'

    r = client.post(url, json={"name": " "}, headers=CONSULTANT)
    assert r.status_code == 400
    assert r.json()["detail"] == "Department name is required"

    client.post(f"/assessments/{a['id']}/lock", headers=CONSULTANT)
    r = client.post(url, json={"name": "Legal"}, headers=CONSULTANT)
    assert r.status_code == 409
    assert r.json()["detail"] == "Cannot add department to locked assessment"


def test_survey_flow_end_to_end(client):
    a = create_assessment(client, departments=["Sales"])
    sales = a["departments"][0]

    # a participant types their department code
    r = client.post("/access/validate", json={"code": sales["management_code"].lower()})
    assert r.status_code == 200
    v = r.json()
    assert v["is_valid"] is True
    assert v["role"] == "management"
    assert v["department"] == "SAL"
    assert v["department_id"] == "sales"

    url = f"/assessments/{a['id']}/responses"
    for score in (8, 9):
        r = client.post(url, json=response_payload("management", {"vision-clarity": score}, department=v["department"]))
        assert r.status_code == 201, r.text
    r = client.post(url, json=response_payload("employee", {"vision-clarity": 5}, department="sales"))
    assert r.status_code == 201
    assert r.json()["response_count"] == {"management": 2, "employee": 1}

    r = client.get(f"/assessments/{a['id']}/departments/data", headers=CONSULTANT)
    assert r.status_code == 200
    [data] = r.json()
    assert data["management_responses"]["overall_average"] == 8.5
    assert data["employee_responses"]["overall_average"] == 5.0
    [gap] = data["perception_gaps"]
    assert gap["gap"] == 3.5
    assert gap["significance"] == "high"

    r = client.get(f"/assessments/{a['id']}/insights", headers=CONSULTANT)
    assert r.status_code == 200
    assert r.json()["department_ranking"][0]["status"] == "needs-attention"

    r = client.get(f"/assessments/{a['id']}/export/departments.csv", headers=CONSULTANT)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment" in r.headers["content-disposition"]
    assert r.text.splitlines()[1].startswith("Sales,")

    r = client.get(f"/assessments/{a['id']}/export/summary.csv", headers=CONSULTANT)
    assert r.status_code == 200
    assert r.text.splitlines()[0].startswith("organizationName,")


def test_invalid_response_payload(client):
    a = create_assessment(client)
    url = f"/assessments/{a['id']}/responses"
    assert client.post(url, json=response_payload("contractor", {"q1": 5})).status_code == 422
    assert client.post(url, json=response_payload("employee", {"q1": 11})).status_code == 422
    assert client.post("/assessments/missing/responses", json=response_payload("employee", {"q1": 5})).status_code == 404


def test_lock_blocks_responses_and_legacy_code(client):
    a = create_assessment(client)
    assert client.post("/access/validate", json={"code": a["access_code"]}).json()["is_valid"] is True

    r = client.post(f"/assessments/{a['id']}/lock", headers=CONSULTANT)
    assert r.status_code == 200
    assert r.json()["status"] == "locked"
    assert r.json()["locked_at"] is not None

    assert client.post("/access/validate", json={"code": a["access_code"]}).json()["is_valid"] is False

    r = client.post(f"/assessments/{a['id']}/responses", json=response_payload("employee", {"q1": 5}))
    assert r.status_code == 409


def test_status_transitions(client):
    a = create_assessment(client)
    url = f"/assessments/{a['id']}/status"

    assert client.post(url, json={"status": "ready"}, headers=CONSULTANT).status_code == 200

    r = client.post(url, json={"status": "collecting"}, headers=CONSULTANT)
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot change status from ready to collecting"

    assert client.post(url, json={"status": "archived"}, headers=CONSULTANT).status_code == 422


def test_if_match_version_check(client):
    a = create_assessment(client)
    url = f"/assessments/{a['id']}/access-code/regenerate"

    r = client.post(url, headers={**CONSULTANT, "If-Match": '"999"'})
    assert r.status_code == 409
    assert r.json()["detail"]["message"] == "Stale version"

    r = client.post(url, headers={**CONSULTANT, "If-Match": "abc"})
    assert r.status_code == 400

    r = client.post(url, headers={**CONSULTANT, "If-Match": f'"{a["version"]}"'})
    assert r.status_code == 200
    assert r.json()["access_code"] != a["access_code"]
    assert r.headers["ETag"] == f'"{a["version"] + 1}"'


def test_regenerate_department_codes(client):
    a = create_assessment(client, departments=["Sales"])
    old = a["departments"][0]

    r = client.post(f"/assessments/{a['id']}/departments/regenerate-codes", headers=CONSULTANT)
    assert r.status_code == 200
    new = r.json()["departments"][0]
    assert new["management_code"] != old["management_code"]
    assert new["employee_code"] != old["employee_code"]

    assert client.post("/access/validate", json={"code": old["management_code"]}).json()["is_valid"] is False


def test_update_questions(client):
    a = create_assessment(client)
    url = f"/assessments/{a['id']}/questions"

    r = client.put(url, json={"questions": []}, headers=CONSULTANT)
    assert r.status_code == 400
    assert r.json()["detail"].startswith("Invalid questions:")

    r = client.put(
        url,
        json={"questions": [
            {"text": "Do we know where we are going?", "category": "Vision", "order": 3},
            {"id": "q-ops", "text": "Ops?", "category": "Operations", "order": 1},
        ]},
        headers=CONSULTANT,
    )
    assert r.status_code == 200
    assert [(q["id"], q["order"]) for q in r.json()["questions"]] == [
        ("q-ops", 1),
        ("do-we-know-where-we-are-going", 2),
    ]


def test_delete_assessment(client):
    a = create_assessment(client)
    client.post(f"/assessments/{a['id']}/responses", json=response_payload("employee", {"q1": 5}))

    r = client.delete(f"/assessments/{a['id']}", headers=CONSULTANT)
    assert r.status_code == 204
    assert client.get(f"/assessments/{a['id']}", headers=CONSULTANT).status_code == 404


def test_audit_endpoint(client):
    a = create_assessment(client, departments=["Sales"])
    client.post(f"/assessments/{a['id']}/responses", json=response_payload("employee", {"q1": 5}, participant_id="jane"))
    client.post(f"/assessments/{a['id']}/lock", headers=CONSULTANT)

    r = client.get(f"/assessments/{a['id']}/audit", headers=CONSULTANT)
    assert r.status_code == 200
    events = r.json()
    assert {e["action"] for e in events} == {"ASSESSMENT_CREATED", "RESPONSE_SUBMITTED", "STATUS_CHANGED"}
    submitted = next(e for e in events if e["action"] == "RESPONSE_SUBMITTED")
    assert submitted["actor_id"] is None
    assert "jane" not in str(submitted["metadata"])

    r = client.get(f"/assessments/{a['id']}/audit?action=STATUS_CHANGED", headers=CONSULTANT)
    assert [e["action"] for e in r.json()] == ["STATUS_CHANGED"]

    assert client.get(f"/assessments/{a['id']}/audit", headers=OTHER_CONSULTANT).status_code == 403


def test_validate_unknown_code(client):
    r = client.post("/access/validate", json={"code": "garbage"})
    assert r.status_code == 200
    assert r.json()["is_valid"] is False
    assert r.json()["assessment_id"] == ""


def test_submission_without_completed_at_stays_in_progress(client, db_session):
    a = create_assessment(client)
    url = f"/assessments/{a['id']}/responses"

    assert client.post(url, json=response_payload("employee", {"q1": 5})).status_code == 201
    done = {**response_payload("employee", {"q1": 6}, participant_id="p-2"), "completed_at": "2025-03-14T10:00:00Z"}
    assert client.post(url, json=done).status_code == 201

    by_participant = {r.participant_id: r for r in AssessmentRepository(db_session).get_participant_responses(a["id"])}
    assert by_participant["p-1"].completed_at is None
    assert by_participant["p-1"].started_at is not None
    assert by_participant["p-2"].completed_at is not None


def test_audit_limit_bounds(client):
    a = create_assessment(client)
    url = f"/assessments/{a['id']}/audit"

    assert client.get(f"{url}?limit=0", headers=CONSULTANT).status_code == 422
    assert client.get(f"{url}?limit=-1", headers=CONSULTANT).status_code == 422
    assert client.get(f"{url}?limit=201", headers=CONSULTANT).status_code == 422

    r = client.get(f"{url}?limit=1", headers=CONSULTANT)
    assert r.status_code == 200
    assert len(r.json()) == 1
