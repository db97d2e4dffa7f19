import pytest

from alignment.core.department_matching import (
    MatchKind,
    match_department,
    resolve_department,
    responses_for_department,
)
from alignment.schemas.assessment import Department
from tests.helpers import make_response

SALES = Department(id="sales", name="Sales", management_code="ACMECORP-MGMT-SAL0123", employee_code="ACMECORP-EMP-SAL0123")
SALES_OPS = Department(
    id="sales-operations", name="Sales Operations",
    management_code="ACMECORP-MGMT-SAL0124", employee_code="ACMECORP-EMP-SAL0124",
)
ENGINEERING = Department(
    id="engineering", name="Engineering",
    management_code="ACMECORP-MGMT-ENG0123", employee_code="ACMECORP-EMP-ENG0123",
)


@pytest.mark.parametrize(
    "tag,kind",
    [
        ("engineering", MatchKind.EXACT),
        ("ENG", MatchKind.CODE_FRAGMENT),
        ("EN", MatchKind.FRAGMENT_PREFIX),
        ("Engineer", MatchKind.SUBSTRING),
        ("gin", MatchKind.SUBSTRING),
        ("marketing", MatchKind.NONE),
        ("", MatchKind.NONE),
        (None, MatchKind.NONE),
    ],
)
def test_match_rules(tag, kind):
    m = match_department(tag, ENGINEERING)
    assert m.kind is kind
    assert m.matched is (kind is not MatchKind.NONE)
    assert (m.department is not None and m.department.id == "engineering") is m.matched


def test_rules_are_tried_in_order():
    # "ENG" is both a code fragment and (lower-cased) a substring of the id
    assert match_department("ENG", ENGINEERING).kind is MatchKind.CODE_FRAGMENT


def test_heuristic_kinds():
    assert match_department("EN", ENGINEERING).is_heuristic
    assert match_department("gin", ENGINEERING).is_heuristic
    assert not match_department("ENG", ENGINEERING).is_heuristic


def test_ambiguous_tag_resolves_to_first_department():
    # SAL is the code fragment of both departments
    assert resolve_department("SAL", [SALES, SALES_OPS]).department.id == "sales"
    assert resolve_department("SAL", [SALES_OPS, SALES]).department.id == "sales-operations"


def test_exact_id_on_later_department_loses_to_earlier_heuristic():
    # "sales" is a substring of "sales-operations", which is listed first
    m = resolve_department("sales", [SALES_OPS, SALES])
    assert m.department.id == "sales-operations"
    assert m.kind is MatchKind.SUBSTRING


def test_unmatched_tag():
    assert resolve_department("legal", [SALES, ENGINEERING]).department is None


def test_responses_counted_for_one_department_only():
    departments = [SALES, SALES_OPS, ENGINEERING]
    responses = [
        make_response("a-1", "management", {"q1": 8}, department="SAL"),
        make_response("a-1", "employee", {"q1": 5}, department="sales-operations"),
        make_response("a-1", "employee", {"q1": 6}, department="ENG"),
        make_response("a-1", "employee", {"q1": 6}, department=""),
    ]

    sales = responses_for_department(responses, SALES, departments)
    sales_ops = responses_for_department(responses, SALES_OPS, departments)
    eng = responses_for_department(responses, ENGINEERING, departments)

    assert [r.department for r in sales] == ["SAL"]
    assert [r.department for r in sales_ops] == ["sales-operations"]
    assert [r.department for r in eng] == ["ENG"]


def test_responses_for_department_role_filter():
    responses = [
        make_response("a-1", "management", {"q1": 8}, department="sales"),
        make_response("a-1", "employee", {"q1": 5}, department="sales"),
    ]
    only_mgmt = responses_for_department(responses, SALES, [SALES], role="management")
    assert [r.role for r in only_mgmt] == ["management"]
