"""
Maps the free-text department tag stored on a response back to a Department.

Tags in the wild are either the department id ("sales"), the fragment of a
department access code ("SAL"), a shorter truncation of that fragment ("SA"),
or an older free-text name. The rules below are heuristics and are tried in
order, per department; the first department that matches wins, so an
ambiguous tag lands on whichever department is listed first.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable

from pydantic import BaseModel

from alignment.core.access_codes import extract_department_fragment
from alignment.schemas.assessment import Department, ParticipantResponse

logger = logging.getLogger(__name__)


class MatchKind(str, Enum):
    EXACT = "exact"
    CODE_FRAGMENT = "code_fragment"
    FRAGMENT_PREFIX = "fragment_prefix"
    SUBSTRING = "substring"
    NONE = "none"


class DepartmentMatch(BaseModel):
    kind: MatchKind
    department: Department | None = None

    @property
    def matched(self) -> bool:
        return self.kind is not MatchKind.NONE

    @property
    def is_heuristic(self) -> bool:
        return self.kind in (MatchKind.FRAGMENT_PREFIX, MatchKind.SUBSTRING)


NO_MATCH = DepartmentMatch(kind=MatchKind.NONE)


def _code_fragments(department: Department) -> list[str]:
    out = []
    for code in (department.management_code, department.employee_code):
        fragment = extract_department_fragment(code)
        if fragment:
            out.append(fragment)
    return out


def match_department(tag: str | None, department: Department) -> DepartmentMatch:
    if not tag:
        return NO_MATCH

    if tag == department.id:
        return DepartmentMatch(kind=MatchKind.EXACT, department=department)

    fragments = _code_fragments(department)
    if tag in fragments:
        return DepartmentMatch(kind=MatchKind.CODE_FRAGMENT, department=department)
    if any(f.startswith(tag) for f in fragments):
        return DepartmentMatch(kind=MatchKind.FRAGMENT_PREFIX, department=department)

    if tag.lower() in department.id:
        return DepartmentMatch(kind=MatchKind.SUBSTRING, department=department)

    return NO_MATCH


def resolve_department(tag: str | None, departments: Iterable[Department]) -> DepartmentMatch:
    for department in departments:
        match = match_department(tag, department)
        if match.matched:
            if match.is_heuristic:
                logger.debug("department tag %r matched %s by %s", tag, department.id, match.kind.value)
            return match
    return NO_MATCH


def responses_for_department(
    responses: Iterable[ParticipantResponse],
    department: Department,
    departments: list[Department],
    role: str | None = None,
) -> list[ParticipantResponse]:
    """
    Responses whose tag resolves to `department` when checked against the
    whole department list, so a tag is never counted for two departments.
    """
    out = []
    for r in responses:
        if role and r.role != role:
            continue
        match = resolve_department(r.department, departments)
        if match.department is not None and match.department.id == department.id:
            out.append(r)
    return out
