import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.routers.pipeline import router as pipeline_router
from app.routers.batch import router as batch_router
from app.routers.content import router as content_router
from app.routers.raw_items import router as raw_items_router
from app.routers import publishing
from app.routers import review
from app.services.errors import (
    ConcurrencyConflict,
    GenerationError,
    InvalidTransitionError,
    LowConfidenceError,
    NotFoundError,
    PipelineError,
    PublicationTargetError,
)
from app.utils.logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

# Create FastAPI app FIRST
app = FastAPI(title="Hyperlocal News Moderation Pipeline")

cors_origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_STATUS = (
    (NotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConcurrencyConflict, 409),
    (PublicationTargetError, 409),
    (LowConfidenceError, 422),
    (GenerationError, 502),
)


@app.exception_handler(PipelineError)
def pipeline_error_handler(request: Request, exc: PipelineError):
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 400)
    logger.info("%s %s -> %s: %s", request.method, request.url.path, status_code, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# Register routers
app.include_router(pipeline_router)
app.include_router(batch_router)
app.include_router(content_router)
app.include_router(raw_items_router)
app.include_router(publishing.router)
app.include_router(review.router)


# Health check
@app.get("/")
def health_check():
    return {"status": "ok"}
