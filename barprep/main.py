"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from barprep import __version__
from barprep.api import (
    chat_router,
    health_router,
    questions_router,
    recommendations_router,
    responses_router,
    sessions_router,
    users_router,
)
from barprep.config import settings
from barprep.core.exceptions import NotFoundError, SubmissionRejected
from barprep.db.session import init_db
from barprep.providers import close_ai_service

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(name)-25s  %(levelname)-8s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Bar prep backend starting (%s)…", settings.ENV)
    if settings.DATABASE_AUTO_CREATE:
        init_db()
        logger.info("Database tables ensured")
    yield
    close_ai_service()
    logger.info("✅ Bar prep backend shut down")


app = FastAPI(
    title="Bar Prep API",
    description="AI-assisted bar exam preparation",
    version=__version__,
    lifespan=lifespan,
)

# ── Middleware ─────────────────────────────────────────────────────────────────

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS)

# ── Error handling ────────────────────────────────────────────────────────────


@app.exception_handler(RequestValidationError)
async def on_validation_error(request: Request, exc: RequestValidationError):
    logger.warning("validation failure on %s %s: %s", request.method, request.url.path, exc.errors())
    return await request_validation_exception_handler(request, exc)


@app.exception_handler(SubmissionRejected)
async def on_submission_rejected(request: Request, exc: SubmissionRejected):
    logger.warning("validation failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def on_not_found(request: Request, exc: NotFoundError):
    logger.info("%s %s not found: %s", exc.entity, exc.identifier, request.url.path)
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(SQLAlchemyError)
async def on_persistence_error(request: Request, exc: SQLAlchemyError):
    logger.error(
        "persistence failure on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ───────────────────────────────────────────────────────────────────

app.include_router(health_router, tags=["Health"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(sessions_router, prefix="/api/test-sessions", tags=["Test sessions"])
app.include_router(responses_router, prefix="/api/question-responses", tags=["Responses"])
app.include_router(questions_router, prefix="/api", tags=["Questions"])
app.include_router(chat_router, prefix="/api/chat", tags=["Chat"])
app.include_router(recommendations_router, prefix="/api/recommendations", tags=["Recommendations"])


@app.get("/")
async def root():
    return {
        "name": "Bar Prep API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
