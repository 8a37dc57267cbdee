# FastAPI entry point; exposes the exam session engine over HTTP
# exam_engine/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from exam_engine.endpoints import (
    exams as exams_router,
    sessions as sessions_router,
    users as users_router,
)
from exam_engine.errors import (
    ExamEngineError,
    ExamValidationError,
    PreconditionError,
    SessionNotFoundError,
    SubmissionFailedError,
    SubmissionInProgressError,
)
from exam_engine.models.records import Base
from exam_engine.services.exam_catalog import exam_catalog
from exam_engine.services.session_manager import session_manager
from exam_engine.utils.config import settings
from exam_engine.utils.db import engine
from exam_engine.utils.logger import logger

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    logger.info("Exam engine API starting up...")

    # Create database tables if they don't exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    logger.info("Loading exams...")
    exam_catalog.load_exams(settings.exams_file_path)

    logger.info("Startup complete.")
    yield
    # On shutdown
    session_manager.clear()
    logger.info("Exam engine API shutting down...")

# --- FastAPI App Initialization ---
app = FastAPI(
    title="Adaptive Exam Engine API",
    description="Timed, adaptive exam sessions with performance tracking.",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this to your frontend's domain
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Engine errors ---
def status_code_for(exc: ExamEngineError) -> int:
    if isinstance(exc, SessionNotFoundError):
        return 404
    if isinstance(exc, (PreconditionError, SubmissionInProgressError)):
        return 409
    if isinstance(exc, ExamValidationError):
        return 422
    if isinstance(exc, SubmissionFailedError):
        return 502
    return 400

@app.exception_handler(ExamEngineError)
async def engine_error_handler(request: Request, exc: ExamEngineError):
    status_code = status_code_for(exc)
    logger.warning(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )

# --- API Routers ---
app.include_router(exams_router.router, prefix="/exams", tags=["Exams"])
app.include_router(sessions_router.router, prefix="/sessions", tags=["Sessions"])
app.include_router(users_router.router, prefix="/users")

@app.get("/")
async def root():
    return {"message": "Welcome to the Adaptive Exam Engine API"}
