from __future__ import annotations

from typing import Iterable, Mapping

from alignment.core.questions import OTHER_CATEGORY, QUESTION_CATEGORIES
from alignment.schemas.assessment import (
    AggregatedResponses,
    CategoryAverage,
    ParticipantResponse,
)


def aggregate_responses(
    responses: Iterable[ParticipantResponse],
    categories: Mapping[str, str] | None = None,
) -> AggregatedResponses:
    """
    Per-category and overall mean score of a set of responses.

    Skipped answers (score None) are ignored. Question ids missing from
    `categories` are counted under "Other". response_count is the number of
    response records, not answers. No rounding.
    """
    responses = list(responses)
    if not responses:
        return AggregatedResponses()

    lookup = QUESTION_CATEGORIES if categories is None else categories

    # dict keeps first-seen category order
    sums: dict[str, list[float]] = {}
    total_sum = 0.0
    total_count = 0

    for response in responses:
        for answer in response.responses:
            if answer.score is None:
                continue
            category = lookup.get(answer.question_id, OTHER_CATEGORY)
            bucket = sums.setdefault(category, [0.0, 0])
            bucket[0] += answer.score
            bucket[1] += 1
            total_sum += answer.score
            total_count += 1

    return AggregatedResponses(
        category_averages=[
            CategoryAverage(category=category, average=s / n, responses=n)
            for category, (s, n) in sums.items()
        ],
        overall_average=total_sum / total_count if total_count else 0.0,
        response_count=len(responses),
    )
