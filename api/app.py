"""FastAPI application: CRUD resources, background-work endpoints and /health."""
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import (
    analysis,
    companies,
    contacts,
    insights,
    meetings,
    pain_points,
    recordings,
    search,
    settings,
    transcripts,
)
from db.connection import dispose_engine
from errors import MissingApiKeyError, NotFoundError, PainPointError
from llm_init import init_llm
from schemas.api import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    logger.info("Starting PainPoint API.")
    init_llm()

    yield

    # Shutdown
    logger.info("Shutting down PainPoint API.")
    await dispose_engine()


def _error(status_code: int, error: str, detail) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=None if detail is None else str(detail)).model_dump(),
    )


async def http_error_handler(request: Request, exc: HTTPException):
    return _error(exc.status_code, "http_error", exc.detail)


async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, "not_found", exc)


async def missing_api_key_handler(request: Request, exc: MissingApiKeyError):
    return _error(status.HTTP_400_BAD_REQUEST, "missing_api_key", exc)


async def painpoint_error_handler(request: Request, exc: PainPointError):
    logger.error("Unhandled %s: %s", exc.__class__.__name__, exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", exc)


def create_app() -> FastAPI:
    app = FastAPI(
        title="PainPoint API",
        version=VERSION,
        description="Meetings, transcripts and the customer pain points found in them.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(MissingApiKeyError, missing_api_key_handler)
    app.add_exception_handler(PainPointError, painpoint_error_handler)

    for module in (
        companies,
        contacts,
        meetings,
        recordings,
        transcripts,
        pain_points,
        insights,
        search,
        settings,
        analysis,
    ):
        app.include_router(module.router, prefix="/api")

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=VERSION)

    return app
