"""
StudyCast API
FastAPI application that turns study material into an outline, summaries,
study aids and a two-voice podcast.

This is the main entry point that wires together all routes and services.
"""

import os
import uuid
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import API_DESCRIPTION, API_TITLE, API_VERSION, CORS_ORIGINS, describe_models
from .core import (
    GenerationError,
    ImportFormatError,
    NavigationError,
    ParseError,
    PersistenceError,
    PipelineInputError,
    ProjectNotFoundError,
    StudyCastError,
    TransitionInProgressError,
    clear_context,
    get_logger,
    set_request_id,
    setup_logging,
)
from .routes import pipeline_router, projects_router, prompt_router

# Initialize logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE")
use_json_logs = os.getenv("JSON_LOGS", "false").lower() == "true"

setup_logging(
    level=log_level,
    log_file=Path(log_file) if log_file else None,
    use_json=use_json_logs,
)

logger = get_logger(__name__, service="api")
logger.info("Starting StudyCast API", extra={
    "log_level": log_level,
    "json_logs": use_json_logs,
})

# Most specific first
ERROR_STATUS = (
    (ProjectNotFoundError, 404),
    (TransitionInProgressError, 409),
    (NavigationError, 409),
    (PipelineInputError, 400),
    (ParseError, 422),
    (ImportFormatError, 422),
    (GenerationError, 502),
    (PersistenceError, 500),
)


def status_for(error: StudyCastError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(error, error_type):
            return status
    return 500


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
)


@app.middleware("http")
async def add_request_correlation(request: Request, call_next):
    """Attach a request id to the logs and the response."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    set_request_id(request_id)
    logger.info(f"{request.method} {request.url.path}", extra={
        "method": request.method,
        "path": request.url.path,
    })
    try:
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        logger.info(f"Response: {response.status_code}", extra={
            "status_code": response.status_code,
            "method": request.method,
            "path": request.url.path,
        })
        return response
    finally:
        clear_context()


@app.exception_handler(StudyCastError)
async def studycast_error_handler(_request: Request, exc: StudyCastError):
    status = status_for(exc)
    log = logger.error if status >= 500 else logger.warning
    log("Request failed", extra={
        "status_code": status,
        "error_type": type(exc).__name__,
        "failed_stage": exc.stage,
        "error": exc.message,
    })
    return JSONResponse(
        status_code=status,
        content={"detail": exc.message, "stage": exc.stage, "error_type": type(exc).__name__},
    )


# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(projects_router)
app.include_router(pipeline_router)
app.include_router(prompt_router)


@app.get("/")
async def root():
    """Root endpoint - API info"""
    return {
        "message": "StudyCast API - Turn study material into a podcast",
        "version": API_VERSION,
    }


@app.get("/health")
async def health_check():
    """Liveness plus the configuration a deployment usually gets wrong."""
    return {
        "status": "healthy",
        "checks": {
            "gemini_api_key": {"configured": bool(os.getenv("GEMINI_API_KEY"))},
            "models": describe_models(),
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("studycast.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
