from fastapi import APIRouter, HTTPException

from alignment.core.questions import TEMPLATES, QuestionTemplate, get_template

router = APIRouter(prefix="/templates", tags=["templates"])


@router.get("", response_model=list[QuestionTemplate])
def list_templates():
    return TEMPLATES


@router.get("/{template_id}", response_model=QuestionTemplate)
def get_question_template(template_id: str):
    t = get_template(template_id)
    if not t:
        raise HTTPException(status_code=404, detail="Template not found")
    return t
