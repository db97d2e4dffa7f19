from fastapi import APIRouter, Depends

from alignment.core.access import get_store
from alignment.core.assessment_store import AssessmentStore
from alignment.schemas.assessment import AccessCodeValidation
from alignment.schemas.payloads import AccessCodeCheck

router = APIRouter(prefix="/access", tags=["access"])


@router.post("/validate", response_model=AccessCodeValidation)
def validate_access_code(
    payload: AccessCodeCheck,
    store: AssessmentStore = Depends(get_store),
):
    """
    Public. Always 200: an unknown, malformed, expired or locked code comes
    back with is_valid=false.
    """
    return store.validate_access_code(payload.code)
