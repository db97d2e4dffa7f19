from fastapi import APIRouter

router = APIRouter()

@router.get("/")
def root():
    return {
        "name": "Strategic Alignment Service",
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "templates": "/templates",
    }
