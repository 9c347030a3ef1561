# pg_enhanced/api/error_handlers.py
"""
FastAPI exception handlers that map pg_enhanced errors to HTTP responses.

How to use:
    - Call `register_exception_handlers(app)` from your app factory.
    - Route code lets DBError / QueryTemplateError propagate from PgClient.
    - The handlers reply with exc.to_payload() and exc.http_status(): 429 for timeouts and
      too-many-connections (the client may retry), 400 otherwise.

    from fastapi import FastAPI
    from pg_enhanced.api.error_handlers import register_exception_handlers

    def create_app() -> FastAPI:
        app = FastAPI()
        register_exception_handlers(app)
        return app
"""

from fastapi import Request
from fastapi.responses import JSONResponse
import logging
from ..exceptions.base import DBError, PgEnhancedError

logger = logging.getLogger(__name__)


async def db_error_handler(request: Request, exc: DBError) -> JSONResponse:
    """
    400, or 429 for retryable errors.
    Payload: {"detail": "<classified message>", "type": "DBError"}
    """
    # The query text is logged, its parameters are not.
    logger.warning(
        "DBError for %s %s: %s", request.method, request.url, exc.message,
        extra={"status_code": exc.status_code, "query_text": exc.query},
    )
    response = JSONResponse(status_code=exc.http_status(), content=exc.to_payload())
    if exc.is_timeout_error or exc.is_too_many_connections_error:
        response.headers["Retry-After"] = "1"
    return response


async def pg_enhanced_error_handler(request: Request, exc: PgEnhancedError) -> JSONResponse:
    """
    Fallback for the remaining package errors (e.g. QueryTemplateError) -> 400.
    """
    logger.info("%s for %s %s: %s", exc.type, request.method, request.url, exc.message)
    return JSONResponse(status_code=exc.http_status(), content=exc.to_payload())


# Most specific first.
def register_exception_handlers(app):
    app.add_exception_handler(DBError, db_error_handler)
    app.add_exception_handler(PgEnhancedError, pg_enhanced_error_handler)
