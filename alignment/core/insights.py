from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from alignment.schemas.assessment import AggregatedDepartmentData

DepartmentStatus = Literal["critical", "needs-attention", "performing-well"]


class DepartmentRanking(BaseModel):
    department: str
    department_name: str
    overall_score: float
    alignment_gap: float
    critical_gaps: int
    status: DepartmentStatus


class ConsultantInsights(BaseModel):
    department_ranking: list[DepartmentRanking]
    organizational_health: int
    success_story: DepartmentRanking | None = None
    critical_priority: DepartmentRanking | None = None
    total_departments: int
    critical_departments: int
    needs_attention_departments: int

    @property
    def performing_well_departments(self) -> int:
        return self.total_departments - self.critical_departments - self.needs_attention_departments


def department_status(overall_score: float, alignment_gap: float, critical_gaps: int) -> str:
    if critical_gaps > 2 or overall_score < 6:
        return "critical"
    if critical_gaps > 0 or alignment_gap > 1.5:
        return "needs-attention"
    return "performing-well"


def rank_department(data: AggregatedDepartmentData) -> DepartmentRanking:
    mgmt = data.management_responses.overall_average
    emp = data.employee_responses.overall_average
    overall = (mgmt + emp) / 2
    alignment_gap = abs(mgmt - emp)
    critical_gaps = sum(1 for g in data.perception_gaps if g.significance == "high")
    return DepartmentRanking(
        department=data.department,
        department_name=data.department_name,
        overall_score=overall,
        alignment_gap=alignment_gap,
        critical_gaps=critical_gaps,
        status=department_status(overall, alignment_gap, critical_gaps),
    )


def _round_half_up(x: float) -> int:
    return int(x + 0.5) if x >= 0 else -int(-x + 0.5)


def generate_consultant_insights(department_data: list[AggregatedDepartmentData]) -> ConsultantInsights | None:
    if not department_data:
        return None

    ranking = sorted((rank_department(d) for d in department_data), key=lambda r: r.overall_score, reverse=True)
    health = _round_half_up(sum(r.overall_score for r in ranking) / len(ranking))

    success = next((r for r in ranking if r.status == "performing-well"), ranking[0])
    critical = next((r for r in ranking if r.status == "critical"), None)

    return ConsultantInsights(
        department_ranking=ranking,
        organizational_health=health,
        success_story=success,
        critical_priority=critical,
        total_departments=len(ranking),
        critical_departments=sum(1 for r in ranking if r.status == "critical"),
        needs_attention_departments=sum(1 for r in ranking if r.status == "needs-attention"),
    )
