import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from alignment.api.access import router as access_router
from alignment.api.assessments import router as assessments_router
from alignment.api.audit import router as audit_router
from alignment.api.health import router as health_router
from alignment.api.privacy import router as privacy_router
from alignment.api.root import router as root_router
from alignment.api.templates import router as templates_router
from alignment.core.config import settings
from alignment.core.legal_basis import LegalBasisTracker
from alignment.core.errors import (
    AssessmentLockedError,
    AssessmentNotFoundError,
    AssessmentValidationError,
    ConcurrentModificationError,
)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Strategic Alignment Service")
app.state.legal_basis = LegalBasisTracker()

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
)


@app.exception_handler(AssessmentNotFoundError)
async def not_found_handler(request: Request, exc: AssessmentNotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(AssessmentLockedError)
async def locked_handler(request: Request, exc: AssessmentLockedError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(AssessmentValidationError)
async def validation_handler(request: Request, exc: AssessmentValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(ConcurrentModificationError)
async def conflict_handler(request: Request, exc: ConcurrentModificationError):
    logger.warning("concurrent modification on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


app.include_router(root_router)
app.include_router(health_router)
app.include_router(templates_router)
app.include_router(access_router)
app.include_router(assessments_router)
app.include_router(audit_router)
app.include_router(privacy_router)
