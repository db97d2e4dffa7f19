from fastapi import Header, HTTPException, status


def get_current_consultant(
    x_consultant_id: str | None = Header(default=None),
) -> str:
    """
    DEV AUTH: pass X-Consultant-Id header to act as a consultant.
    Example: X-Consultant-Id: consultant-1
    """
    if not x_consultant_id or not x_consultant_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Consultant-Id header (dev auth)",
        )
    return x_consultant_id.strip()
