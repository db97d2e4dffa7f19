from __future__ import annotations

import csv
import io
import re
from datetime import datetime, timezone

from alignment.core.insights import ConsultantInsights
from alignment.schemas.assessment import Assessment

DEPARTMENT_FIELDS = [
    "department",
    "overallScore",
    "managementScore",
    "employeeScore",
    "alignmentGap",
    "criticalGaps",
    "status",
    "managementResponses",
    "employeeResponses",
]

SUMMARY_FIELDS = [
    "organizationName",
    "assessmentDate",
    "organizationalHealth",
    "totalDepartments",
    "departmentsPerformingWell",
    "departmentsNeedingAttention",
    "criticalDepartments",
    "totalManagementResponses",
    "totalEmployeeResponses",
    "exportedAt",
]


def _to_csv(rows: list[dict], fieldnames: list[str]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=fieldnames, lineterminator="\n")
    writer.writeheader()
    writer.writerows(rows)
    return buf.getvalue().rstrip("\n")


def department_performance_rows(assessment: Assessment, insights: ConsultantInsights) -> list[dict]:
    by_id = {d.department: d for d in assessment.department_data}
    rows = []
    for ranked in insights.department_ranking:
        data = by_id.get(ranked.department)
        rows.append(
            {
                "department": ranked.department_name,
                "overallScore": round(ranked.overall_score, 2),
                "managementScore": round(data.management_responses.overall_average, 2) if data else 0,
                "employeeScore": round(data.employee_responses.overall_average, 2) if data else 0,
                "alignmentGap": round(ranked.alignment_gap, 2),
                "criticalGaps": ranked.critical_gaps,
                "status": ranked.status,
                "managementResponses": data.response_count.management if data else 0,
                "employeeResponses": data.response_count.employee if data else 0,
            }
        )
    return rows


def generate_department_performance_csv(assessment: Assessment, insights: ConsultantInsights) -> str:
    return _to_csv(department_performance_rows(assessment, insights), DEPARTMENT_FIELDS)


def generate_assessment_summary_csv(
    assessment: Assessment,
    insights: ConsultantInsights,
    *,
    now: datetime | None = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    row = {
        "organizationName": assessment.organization_name,
        "assessmentDate": assessment.created.date().isoformat(),
        "organizationalHealth": insights.organizational_health,
        "totalDepartments": insights.total_departments,
        "departmentsPerformingWell": insights.performing_well_departments,
        "departmentsNeedingAttention": insights.needs_attention_departments,
        "criticalDepartments": insights.critical_departments,
        "totalManagementResponses": assessment.response_count.management,
        "totalEmployeeResponses": assessment.response_count.employee,
        "exportedAt": now.isoformat(),
    }
    return _to_csv([row], SUMMARY_FIELDS)


def export_filename(assessment: Assessment, kind: str, *, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    org = re.sub(r"[^a-zA-Z0-9]", "_", assessment.organization_name)
    return f"{org}_{kind}_{now.date().isoformat()}.csv"
