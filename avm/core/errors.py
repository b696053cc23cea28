"""Error types shared by the adapters and services, plus the API error envelope."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """A collaborator (listings store, LLM, photo API) failed or was unreachable."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.status_code = status_code


class EstimateParseError(ValueError):
    """The LLM reply did not contain a number."""


def _error_body(error: str, details: str | None = None) -> dict:
    body = {"success": False, "error": error}
    if details:
        body["details"] = details
    return body


def error_response(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=_error_body(error, details))


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        # Drop the leading "body" segment; clients only see their own fields
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        field = ".".join(loc) or "body"
        parts.append(f"{field}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts) or "Invalid request"


def register_error_handlers(app: FastAPI) -> None:
    """Every error leaves the API as {success: false, error}."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return error_response(400, _describe_validation(exc))

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, str(exc) or type(exc).__name__)
