"""
Access codes typed by survey participants.

Two formats are in circulation:

  legacy:      ORG-YYYY-WORD          e.g. ACMECORP-2025-VISION
  department:  ORG-ROLE-DEPT####      e.g. ACMECORP-MGMT-SAL4821

ORG is a lossy abbreviation of the organization name, so it is only a display
hint. Lookups always compare the full typed code against the stored codes.
"""
from __future__ import annotations

import random
import re
from datetime import datetime, timedelta, timezone
from typing import Iterable

from alignment.schemas.assessment import AccessCodeValidation, Assessment, ParsedAccessCode

LEGACY_CODE_WORDS: tuple[str, ...] = (
    "STRATEGY", "GROWTH", "VISION", "FOCUS", "ALIGN",
    "ENGAGE", "THRIVE", "EXCEL", "LEAD", "SCALE",
)

ROLE_TOKENS: dict[str, str] = {"management": "MGMT", "employee": "EMP"}
TOKEN_ROLES: dict[str, str] = {v: k for k, v in ROLE_TOKENS.items()}

DEPARTMENT_CODE_RE = re.compile(r"^([A-Z0-9]+)-(MGMT|EMP)-([A-Z0-9]+)\d{4}$")
LEGACY_CODE_RE = re.compile(r"^([A-Z0-9]+)-\d{4}-[A-Z]+$")

INVALID_FORMAT = "Invalid access code format"

_FALLBACK_ORG = "ORG"
_FALLBACK_DEPT = "DEP"

_NON_ALNUM_OR_SPACE = re.compile(r"[^a-zA-Z0-9\s]")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_SLUG_SEPARATORS = re.compile(r"[^a-z0-9]+")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def epoch_millis(now: datetime) -> int:
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - _EPOCH) // timedelta(milliseconds=1)


def sanitize_organization_name(name: str) -> str:
    """ACME Corp. -> ACMECORP; at most 4 chars per word and 8 overall."""
    cleaned = _NON_ALNUM_OR_SPACE.sub("", name or "").strip()
    return "".join(word[:4] for word in cleaned.split())[:8].upper()


def department_token(department_id: str) -> str:
    return _NON_ALNUM.sub("", department_id or "")[:3].upper()


def slugify_department_name(name: str) -> str:
    """Human Resources & Benefits -> human-resources-benefits"""
    return _SLUG_SEPARATORS.sub("-", name.strip().lower()).strip("-")


def generate_legacy_code(
    organization_name: str,
    *,
    now: datetime | None = None,
    rng: random.Random | None = None,
    avoid: str | None = None,
) -> str:
    """`avoid` is a code the result must differ from (the one being replaced)."""
    now = now or _utcnow()
    org = sanitize_organization_name(organization_name) or _FALLBACK_ORG
    words = [w for w in LEGACY_CODE_WORDS if f"{org}-{now.year}-{w}" != avoid]
    word = (rng or random).choice(words)
    return f"{org}-{now.year}-{word}"


def generate_department_code(
    organization_name: str,
    role: str,
    department_id: str,
    *,
    now: datetime | None = None,
) -> str:
    if role not in ROLE_TOKENS:
        raise ValueError(f"Unknown participant role: {role}")

    now = now or _utcnow()
    org = sanitize_organization_name(organization_name) or _FALLBACK_ORG
    dept = department_token(department_id) or _FALLBACK_DEPT
    suffix = str(epoch_millis(now))[-4:]
    return f"{org}-{ROLE_TOKENS[role]}-{dept}{suffix}"


def generate_unique_department_code(
    organization_name: str,
    role: str,
    department_id: str,
    taken: set[str],
    *,
    now: datetime | None = None,
    attempts: int = 10,
) -> str:
    """
    Department codes share the ORG/DEPT prefix whenever two department names
    start alike, so only the timestamp suffix tells them apart. Step the
    timestamp one millisecond at a time until the code is free.
    """
    now = now or _utcnow()
    for i in range(attempts):
        code = generate_department_code(
            organization_name, role, department_id, now=now + timedelta(milliseconds=i)
        )
        if code not in taken:
            return code
    raise RuntimeError(f"Could not generate a unique access code for department {department_id!r}")


def extract_department_fragment(code: str) -> str | None:
    """ACMECORP-MGMT-ENG1234 -> ENG"""
    m = DEPARTMENT_CODE_RE.match((code or "").strip().upper())
    return m.group(3) if m else None


def parse_access_code(code: str | None) -> ParsedAccessCode:
    """
    Structural parse only; never raises. A parsed code is not necessarily
    valid for any assessment (see validate_access_code).
    """
    normalized = (code or "").strip().upper()

    m = DEPARTMENT_CODE_RE.match(normalized)
    if m:
        return ParsedAccessCode(
            is_valid=True,
            role=TOKEN_ROLES[m.group(2)],
            department=m.group(3),
            org_name_guess=m.group(1),
        )

    m = LEGACY_CODE_RE.match(normalized)
    if m:
        return ParsedAccessCode(is_valid=True, org_name_guess=m.group(1))

    return ParsedAccessCode(is_valid=False, errors=[INVALID_FORMAT])


def is_code_expired(assessment: Assessment, *, now: datetime | None = None) -> bool:
    if assessment.code_expiration is None:
        return False
    return (now or _utcnow()) >= assessment.code_expiration


def validate_access_code(
    code: str | None,
    assessments: Iterable[Assessment],
    *,
    now: datetime | None = None,
) -> AccessCodeValidation:
    normalized = (code or "").strip().upper()
    now = now or _utcnow()
    assessments = list(assessments)

    if not parse_access_code(normalized).is_valid:
        return AccessCodeValidation(code=normalized)

    # Department codes first
    for assessment in assessments:
        for dept in assessment.departments:
            for role in ROLE_TOKENS:
                if dept.code_for(role) and dept.code_for(role) == normalized:
                    return AccessCodeValidation(
                        code=normalized,
                        assessment_id=assessment.id,
                        organization_name=assessment.organization_name,
                        is_valid=assessment.status != "locked",
                        role=role,
                        department=extract_department_fragment(normalized),
                        department_id=dept.id,
                    )

    for assessment in assessments:
        if assessment.access_code == normalized:
            expired = is_code_expired(assessment, now=now)
            return AccessCodeValidation(
                code=normalized,
                assessment_id=assessment.id,
                organization_name=assessment.organization_name,
                is_valid=not expired and assessment.status != "locked",
                is_expired=expired,
                expires_at=assessment.code_expiration,
            )

    return AccessCodeValidation(code=normalized)
