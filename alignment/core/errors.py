class AssessmentNotFoundError(LookupError):
    def __init__(self, assessment_id: str):
        super().__init__(f"Assessment not found: {assessment_id}")
        self.assessment_id = assessment_id


class AssessmentValidationError(ValueError):
    """User-input problem; raised before anything is written."""


class AssessmentLockedError(AssessmentValidationError):
    pass


class ConcurrentModificationError(RuntimeError):
    """The stored assessment changed between read and write."""
