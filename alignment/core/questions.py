"""Question templates and the question-id -> category lookup used by aggregation."""
from __future__ import annotations

import re
from typing import Iterable

from pydantic import BaseModel

from alignment.schemas.assessment import Question

OTHER_CATEGORY = "Other"

VISION = "Vision & Strategy"
LEADERSHIP = "Leadership & Culture"
OPERATIONS = "Operations & Performance"
INNOVATION = "Innovation & Agility"
MARKET = "Market & Customer"


class QuestionTemplate(BaseModel):
    id: str
    name: str
    description: str
    strategic_focus: str
    questions: list[Question]
    is_default: bool = True


def _template(id: str, name: str, description: str, questions: list[tuple[str, str, str]]) -> QuestionTemplate:
    return QuestionTemplate(
        id=id,
        name=name,
        description=description,
        strategic_focus=id,
        questions=[
            Question(id=qid, text=text, category=category, order=i)
            for i, (qid, text, category) in enumerate(questions, start=1)
        ],
    )


DEFAULT_TEMPLATE_ID = "strategic-alignment"

TEMPLATES: list[QuestionTemplate] = [
    _template(
        "strategic-alignment",
        "Strategic Alignment Focus",
        "Focus on vision clarity, strategy execution, and organizational alignment",
        [
            ("vision-clarity", "Our organization has a clear and compelling vision for the future", VISION),
            ("strategy-execution", "We consistently execute on our strategic priorities", VISION),
            ("leadership-alignment", "Leadership is aligned on strategic direction and priorities", LEADERSHIP),
            ("stakeholder-buyin", "Key stakeholders are committed to our strategic direction", VISION),
            ("strategic-communication", "Strategic priorities are clearly communicated throughout the organization", LEADERSHIP),
            ("resource-allocation", "Resources are allocated effectively to support strategic objectives", OPERATIONS),
            ("strategic-metrics", "We have clear metrics to track progress on strategic initiatives", OPERATIONS),
            ("strategic-agility", "We can adapt our strategy quickly when circumstances change", INNOVATION),
        ],
    ),
    _template(
        "innovation-growth",
        "Innovation & Growth Focus",
        "Emphasize innovation capability, market responsiveness, and growth mindset",
        [
            ("innovation-capability", "Our organization fosters innovation and adapts quickly to change", INNOVATION),
            ("market-responsiveness", "We respond quickly to changing market conditions", MARKET),
            ("growth-mindset", "Our culture embraces experimentation and learning from failure", LEADERSHIP),
            ("change-agility", "We manage change effectively throughout the organization", INNOVATION),
            ("customer-innovation", "We consistently innovate to meet evolving customer needs", MARKET),
            ("technology-adoption", "We effectively adopt and integrate new technologies", INNOVATION),
            ("competitive-advantage", "We maintain competitive advantages through innovation", MARKET),
            ("innovation-investment", "We invest appropriately in research and development", OPERATIONS),
            ("creative-environment", "We provide an environment that encourages creative thinking", LEADERSHIP),
            ("innovation-execution", "We successfully convert innovative ideas into business results", OPERATIONS),
        ],
    ),
    _template(
        "leadership-culture",
        "Leadership & Culture Focus",
        "Deep dive into leadership effectiveness and organizational culture",
        [
            ("leadership-effectiveness", "Leadership provides clear direction and inspiration", LEADERSHIP),
            ("team-collaboration", "Teams collaborate effectively across the organization", LEADERSHIP),
            ("employee-engagement", "Employees are highly engaged and motivated", LEADERSHIP),
            ("cultural-alignment", "Our organizational culture supports our strategic objectives", LEADERSHIP),
            ("leadership-development", "We effectively develop leadership capabilities at all levels", LEADERSHIP),
            ("communication-effectiveness", "Communication flows effectively throughout the organization", LEADERSHIP),
            ("talent-retention", "We retain our top talent and key contributors", LEADERSHIP),
            ("performance-culture", "We have a culture of high performance and accountability", LEADERSHIP),
            ("diversity-inclusion", "We foster diversity and inclusion throughout the organization", LEADERSHIP),
            ("employee-empowerment", "Employees are empowered to make decisions and take ownership", LEADERSHIP),
            ("feedback-culture", "We have a culture of constructive feedback and continuous improvement", LEADERSHIP),
            ("values-alignment", "Employee behaviors consistently align with our organizational values", LEADERSHIP),
        ],
    ),
    _template(
        "operational-excellence",
        "Operational Excellence Focus",
        "Concentrate on process efficiency, quality, and operational performance",
        [
            ("operational-efficiency", "Our processes and operations run smoothly and efficiently", OPERATIONS),
            ("quality-management", "We consistently deliver high-quality products and services", OPERATIONS),
            ("performance-metrics", "We have clear metrics and KPIs to measure operational performance", OPERATIONS),
            ("continuous-improvement", "We continuously improve our processes and operations", OPERATIONS),
            ("cost-management", "We effectively manage costs while maintaining quality", OPERATIONS),
            ("supply-chain", "Our supply chain and vendor relationships are well managed", OPERATIONS),
            ("risk-management", "We effectively identify and manage operational risks", OPERATIONS),
            ("scalability", "Our operations can scale effectively with business growth", OPERATIONS),
        ],
    ),
    _template(
        "performance-results",
        "Performance & Results Focus",
        "Focus on goal achievement, accountability, and performance measurement",
        [
            ("financial-performance", "We consistently meet our financial targets and goals", OPERATIONS),
            ("goal-achievement", "We consistently achieve our key business objectives", OPERATIONS),
            ("performance-accountability", "There is clear accountability for performance results", LEADERSHIP),
            ("measurement-systems", "We have effective systems to measure and track performance", OPERATIONS),
            ("performance-transparency", "Performance results are transparently communicated", LEADERSHIP),
            ("corrective-action", "We take timely corrective action when performance falls short", OPERATIONS),
        ],
    ),
    _template(
        "digital-transformation",
        "Digital Transformation Focus",
        "Evaluate digital capabilities, technology adoption, and digital culture",
        [
            ("technology-adoption", "We effectively adopt and integrate new technologies", INNOVATION),
            ("digital-capabilities", "We have strong digital capabilities and competencies", INNOVATION),
            ("process-digitization", "Our business processes are effectively digitized", OPERATIONS),
            ("data-driven-decisions", "We make decisions based on data and analytics", OPERATIONS),
            ("digital-customer-experience", "We deliver excellent digital customer experiences", MARKET),
            ("digital-culture", "Our culture embraces digital ways of working", LEADERSHIP),
            ("cybersecurity", "We have robust cybersecurity and data protection measures", OPERATIONS),
            ("digital-skills", "Our workforce has the digital skills needed for success", LEADERSHIP),
            ("automation", "We effectively automate routine processes and tasks", OPERATIONS),
            ("digital-innovation", "We leverage technology to drive innovation and competitive advantage", INNOVATION),
        ],
    ),
]

TEMPLATES_BY_ID: dict[str, QuestionTemplate] = {t.id: t for t in TEMPLATES}

# Ids used by the first survey release, before templates existed
_LEGACY_CATEGORIES: dict[str, str] = {
    "strategy-clarity": "Strategic Clarity",
    "market-position": "Market Position",
    "talent-capabilities": "Talent & Culture",
    "customer-satisfaction": "Customer Focus",
}


def _build_category_table() -> dict[str, str]:
    table = dict(_LEGACY_CATEGORIES)
    for template in TEMPLATES:
        for q in template.questions:
            table.setdefault(q.id, q.category)
    return table


QUESTION_CATEGORIES: dict[str, str] = _build_category_table()


def get_template(template_id: str) -> QuestionTemplate | None:
    return TEMPLATES_BY_ID.get(template_id)


def default_questions() -> list[Question]:
    return [q.model_copy() for q in TEMPLATES_BY_ID[DEFAULT_TEMPLATE_ID].questions]


def category_lookup(questions: Iterable[Question] = ()) -> dict[str, str]:
    """Static table overlaid with an assessment's own question categories."""
    table = dict(QUESTION_CATEGORIES)
    for q in questions:
        table[q.id] = q.category
    return table


def validate_questions(questions: list[Question]) -> list[str]:
    errors: list[str] = []
    if not questions:
        return ["At least one question is required"]

    seen: set[str] = set()
    for i, q in enumerate(questions, start=1):
        if not q.id or not q.id.strip():
            errors.append(f"Question {i}: ID is required")
        elif q.id in seen:
            errors.append(f'Question {i}: Duplicate ID "{q.id}"')
        else:
            seen.add(q.id)

        if not q.text or not q.text.strip():
            errors.append(f"Question {i}: Text is required")
        if not q.category or not q.category.strip():
            errors.append(f"Question {i}: Category is required")
        if q.order < 1:
            errors.append(f"Question {i}: Order must be a positive number")
    return errors


def normalize_questions(questions: list[Question]) -> list[Question]:
    """Sort by order, renumber 1..n and trim text/category."""
    ordered = sorted(questions, key=lambda q: q.order)
    return [
        q.model_copy(update={"text": q.text.strip(), "category": q.category.strip(), "order": i})
        for i, q in enumerate(ordered, start=1)
    ]


def question_id_from_text(text: str, existing: Iterable[str] = ()) -> str:
    base = re.sub(r"\s+", "-", re.sub(r"[^a-z0-9\s]", "", text.lower()))[:50].rstrip("-") or "question"
    taken = set(existing)
    candidate, n = base, 1
    while candidate in taken:
        candidate = f"{base}-{n}"
        n += 1
    return candidate
