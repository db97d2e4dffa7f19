from __future__ import annotations

from alignment.schemas.assessment import AggregatedResponses, CategoryGap

HIGH_GAP = 2.0    # |gap| >= 2  -> high
MEDIUM_GAP = 1.0  # |gap| > 1   -> medium


def gap_direction(gap: float) -> str:
    if gap > 0:
        return "positive"
    if gap < 0:
        return "negative"
    return "neutral"


def gap_significance(gap: float) -> str:
    magnitude = abs(gap)
    if magnitude >= HIGH_GAP:
        return "high"
    if magnitude > MEDIUM_GAP:
        return "medium"
    return "low"


def analyze_gaps(management: AggregatedResponses, employee: AggregatedResponses) -> list[CategoryGap]:
    """
    Management-minus-employee gap for every category management answered.

    Categories only employees answered are dropped, and a category employees
    did not answer is scored 0 on their side, so an unanswered employee
    category shows up as a gap equal to the full management score.
    """
    employee_scores = {c.category: c.average for c in employee.category_averages}

    gaps: list[CategoryGap] = []
    for cat in management.category_averages:
        employee_score = employee_scores.get(cat.category, 0.0)
        gap = cat.average - employee_score
        gaps.append(
            CategoryGap(
                category=cat.category,
                management_score=cat.average,
                employee_score=employee_score,
                gap=gap,
                gap_direction=gap_direction(gap),
                significance=gap_significance(gap),
            )
        )
    return gaps
