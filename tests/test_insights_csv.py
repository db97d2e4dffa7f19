import csv
import io
from datetime import datetime, timezone

import pytest

from alignment.core.csv_export import (
    DEPARTMENT_FIELDS,
    SUMMARY_FIELDS,
    export_filename,
    generate_assessment_summary_csv,
    generate_department_performance_csv,
)
from alignment.core.insights import department_status, generate_consultant_insights
from alignment.schemas.assessment import (
    AggregatedDepartmentData,
    AggregatedResponses,
    Assessment,
    CategoryGap,
    ResponseCount,
)
from tests.helpers import make_response

NOW = datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)


def _dept(dept_id, mgmt, emp, high_gaps=0, name=None) -> AggregatedDepartmentData:
    return AggregatedDepartmentData(
        department=dept_id,
        department_name=name or dept_id.title(),
        management_responses=AggregatedResponses(overall_average=mgmt, response_count=2),
        employee_responses=AggregatedResponses(overall_average=emp, response_count=3),
        response_count=ResponseCount(management=2, employee=3),
        perception_gaps=[
            CategoryGap(
                category=f"C{i}", management_score=9, employee_score=5, gap=4,
                gap_direction="positive", significance="high",
            )
            for i in range(high_gaps)
        ],
    )


@pytest.mark.parametrize(
    "overall,gap,critical,expected",
    [
        (8.0, 0.5, 3, "critical"),
        (5.9, 0.0, 0, "critical"),
        (8.0, 0.5, 1, "needs-attention"),
        (8.0, 1.6, 0, "needs-attention"),
        (8.0, 1.5, 0, "performing-well"),
        (6.0, 0.0, 0, "performing-well"),
    ],
)
def test_department_status(overall, gap, critical, expected):
    assert department_status(overall, gap, critical) == expected


def test_no_department_data_no_insights():
    assert generate_consultant_insights([]) is None


def test_insights_ranking_and_counts():
    insights = generate_consultant_insights([
        _dept("sales", 9.0, 5.0, high_gaps=1),  # overall 7, gap 4 -> needs attention
        _dept("engineering", 8.0, 7.5),  # 7.75 -> performing well
        _dept("operations", 6.0, 4.0, high_gaps=3),  # 5 -> critical
    ])

    assert [r.department for r in insights.department_ranking] == ["engineering", "sales", "operations"]
    assert [r.status for r in insights.department_ranking] == ["performing-well", "needs-attention", "critical"]
    assert insights.department_ranking[1].alignment_gap == 4.0
    assert insights.department_ranking[2].critical_gaps == 3

    assert insights.organizational_health == 7  # mean 6.58 rounds to 7
    assert insights.success_story.department == "engineering"
    assert insights.critical_priority.department == "operations"
    assert insights.total_departments == 3
    assert insights.critical_departments == 1
    assert insights.needs_attention_departments == 1
    assert insights.performing_well_departments == 1


def test_success_story_falls_back_to_top_ranked():
    insights = generate_consultant_insights([_dept("a", 5.0, 4.0), _dept("b", 5.5, 5.0)])
    assert insights.success_story.department == "b"
    assert insights.critical_priority.department == "b"


def test_health_rounds_half_up():
    insights = generate_consultant_insights([_dept("a", 7.0, 6.0)])  # 6.5
    assert insights.organizational_health == 7


def _assessment() -> Assessment:
    data = [_dept("sales", 9.123, 5.0, high_gaps=1, name="Sales, EMEA"), _dept("engineering", 8.0, 7.5)]
    return Assessment(
        id="a-1",
        organization_name="Acme Corp",
        consultant_id="consultant-1",
        created=datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc),
        access_code="ACMECORP-2025-VISION",
        department_data=data,
        response_count=ResponseCount(management=4, employee=6),
    )


def test_department_performance_csv():
    a = _assessment()
    text = generate_department_performance_csv(a, generate_consultant_insights(a.department_data))

    rows = list(csv.DictReader(io.StringIO(text)))
    assert list(rows[0].keys()) == DEPARTMENT_FIELDS
    assert [r["department"] for r in rows] == ["Engineering", "Sales, EMEA"]
    assert rows[1]["managementScore"] == "9.12"
    assert rows[1]["overallScore"] == "7.06"
    assert rows[1]["criticalGaps"] == "1"
    assert rows[1]["status"] == "needs-attention"
    assert rows[1]["employeeResponses"] == "3"
    assert not text.endswith("\n")


def test_assessment_summary_csv():
    a = _assessment()
    text = generate_assessment_summary_csv(a, generate_consultant_insights(a.department_data), now=NOW)

    [row] = list(csv.DictReader(io.StringIO(text)))
    assert list(row.keys()) == SUMMARY_FIELDS
    assert row["organizationName"] == "Acme Corp"
    assert row["assessmentDate"] == "2025-03-01"
    assert row["totalDepartments"] == "2"
    assert row["departmentsPerformingWell"] == "1"
    assert row["totalManagementResponses"] == "4"
    assert row["totalEmployeeResponses"] == "6"
    assert row["exportedAt"] == NOW.isoformat()


def test_export_filename():
    a = _assessment().model_copy(update={"organization_name": "Acme Corp & Sons"})
    assert export_filename(a, "assessment_summary", now=NOW) == "Acme_Corp___Sons_assessment_summary_2025-03-14.csv"


def test_store_insights_and_exports(store):
    a = store.create_assessment("Acme Corp", "consultant-1", departments=["Sales"])
    assert store.consultant_insights(a.id).total_departments == 1

    store.add_participant_response(a.id, make_response(a.id, "management", {"vision-clarity": 9}, department="sales"))
    store.add_participant_response(a.id, make_response(a.id, "employee", {"vision-clarity": 5}, department="sales"))

    insights = store.consultant_insights(a.id)
    [ranked] = insights.department_ranking
    assert ranked.overall_score == 7.0
    assert ranked.critical_gaps == 1
    assert ranked.status == "needs-attention"

    dept_rows = list(csv.DictReader(io.StringIO(store.export_department_csv(a.id))))
    assert dept_rows[0]["department"] == "Sales"

    [summary] = list(csv.DictReader(io.StringIO(store.export_summary_csv(a.id))))
    assert summary["totalManagementResponses"] == "1"


def test_store_exports_without_departments(store):
    a = store.create_assessment("Acme Corp", "consultant-1")
    assert store.consultant_insights(a.id) is None
    assert store.export_department_csv(a.id) == ",".join(DEPARTMENT_FIELDS)
    [summary] = list(csv.DictReader(io.StringIO(store.export_summary_csv(a.id))))
    assert summary["totalDepartments"] == "0"
