from alignment.core.aggregation import aggregate_responses
from alignment.core.questions import OTHER_CATEGORY, VISION, category_lookup
from alignment.schemas.assessment import AggregatedResponses, Question
from tests.helpers import make_response


def test_category_average_over_responses():
    responses = [
        make_response("a-1", "management", {"q1": 8}),
        make_response("a-1", "management", {"q1": 9}),
    ]
    agg = aggregate_responses(responses, {"q1": VISION})

    assert [c.model_dump() for c in agg.category_averages] == [
        {"category": VISION, "average": 8.5, "responses": 2}
    ]
    assert agg.overall_average == 8.5
    assert agg.response_count == 2


def test_static_table_used_by_default():
    agg = aggregate_responses([make_response("a-1", "employee", {"vision-clarity": 6, "strategy-execution": 8})])
    assert [c.category for c in agg.category_averages] == [VISION]
    assert agg.category_averages[0].average == 7.0


def test_unknown_question_falls_back_to_other():
    agg = aggregate_responses([make_response("a-1", "employee", {"mystery": 4})], {})
    assert agg.category_averages[0].category == OTHER_CATEGORY
    assert agg.overall_average == 4.0


def test_skipped_answers_are_ignored_but_response_still_counted():
    responses = [
        make_response("a-1", "employee", {"q1": None, "q2": 6}),
        make_response("a-1", "employee", {"q1": None}),
    ]
    agg = aggregate_responses(responses, {"q1": "A", "q2": "B"})

    assert [(c.category, c.average, c.responses) for c in agg.category_averages] == [("B", 6.0, 1)]
    assert agg.overall_average == 6.0
    assert agg.response_count == 2


def test_all_skipped_gives_zero_overall():
    agg = aggregate_responses([make_response("a-1", "employee", {"q1": None})], {})
    assert agg.category_averages == []
    assert agg.overall_average == 0.0
    assert agg.response_count == 1


def test_empty_input():
    assert aggregate_responses([]) == AggregatedResponses()


def test_first_seen_category_order_and_no_rounding():
    responses = [
        make_response("a-1", "management", {"b1": 7, "a1": 10}),
        make_response("a-1", "management", {"a1": 9, "b1": 8, "c1": 1}),
        make_response("a-1", "management", {"b1": 8}),
    ]
    agg = aggregate_responses(responses, {"a1": "A", "b1": "B", "c1": "C"})

    assert [c.category for c in agg.category_averages] == ["B", "A", "C"]
    assert agg.category_averages[0].average == 23 / 3
    assert agg.overall_average == 43 / 6


def test_aggregation_is_idempotent():
    responses = [
        make_response("a-1", "employee", {"vision-clarity": 3, "leadership-alignment": 9}),
        make_response("a-1", "employee", {"vision-clarity": 5, "q-unknown": None}),
    ]
    assert aggregate_responses(responses) == aggregate_responses(responses)


def test_assessment_questions_override_static_categories():
    own = [Question(id="vision-clarity", text="Custom", category="Custom Category", order=1)]
    agg = aggregate_responses([make_response("a-1", "employee", {"vision-clarity": 5})], category_lookup(own))
    assert agg.category_averages[0].category == "Custom Category"
