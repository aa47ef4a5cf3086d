"""
FastAPI application factory for the TalkDB HTTP server.

This module creates the FastAPI app with:
- The orchestrator attached to app state
- API routes under /api/v1
- Mapping of domain errors to HTTP status codes

Invariants:
    - Error responses share one body shape: {"error", "error_code", "details"}
    - Catalog errors never become 500s unless they are persistence failures
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .._version import __version__
from ..catalog import (
    CatalogError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
)
from ..handler import EmptyQueryError, QueryOrchestrator, UnknownDriverError
from ..introspect import IntrospectionError
from ..translate import TranslationError
from .routes import router

logger = logging.getLogger(__name__)

CATALOG_STATUS = {
    NotFoundError: 404,
    ConflictError: 409,
    InvalidInputError: 400,
    PersistenceError: 500,
}


def _error_response(status: int, message: str, code: str, details: dict | None = None) -> JSONResponse:
    return JSONResponse(
        {"error": message, "error_code": code, "details": details or {}},
        status_code=status,
    )


def create_app(orchestrator: QueryOrchestrator) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        orchestrator: Orchestrator backing every route

    Returns:
        FastAPI application
    """
    app = FastAPI(
        title="TalkDB",
        description=(
            "Catalog live relational databases and query them with "
            "natural-language questions."
        ),
        version=__version__,
    )
    app.state.orchestrator = orchestrator

    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "talkdb"}

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
        status = CATALOG_STATUS.get(type(exc), 500)
        if status >= 500:
            logger.error(f"Catalog error on {request.url.path}: {exc.message}")
        return _error_response(status, exc.message, exc.code, exc.details)

    @app.exception_handler(UnknownDriverError)
    async def unknown_driver_handler(request: Request, exc: UnknownDriverError) -> JSONResponse:
        return _error_response(400, str(exc), "UNKNOWN_DRIVER")

    @app.exception_handler(EmptyQueryError)
    async def empty_query_handler(request: Request, exc: EmptyQueryError) -> JSONResponse:
        return _error_response(422, str(exc), "UNANSWERABLE")

    @app.exception_handler(TranslationError)
    async def translation_error_handler(request: Request, exc: TranslationError) -> JSONResponse:
        logger.error(f"Translation failed on {request.url.path}: {exc}")
        return _error_response(502, str(exc), "TRANSLATION_FAILED")

    @app.exception_handler(IntrospectionError)
    async def introspection_error_handler(
        request: Request, exc: IntrospectionError
    ) -> JSONResponse:
        logger.error(f"Live database error on {request.url.path}: {exc}")
        return _error_response(502, str(exc), "DATABASE_ERROR")

    return app
