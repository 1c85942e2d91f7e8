"""Error kinds and the JSON error envelope.

Every error leaving the HTTP boundary is rendered as {"message": ...} with
the status code of its kind. Services and the auth layer raise the domain
errors below; routes raise HTTPException for plain lookups. Request
validation failures are rendered as ValidationFailedError. All end up in
the same shape.
"""

from typing import Any, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class AgriScienceError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code = 500
    headers: Optional[dict[str, str]] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def body(self) -> dict[str, Any]:
        return {"message": self.message}


class UnauthorizedError(AgriScienceError):
    """No credential presented, or credentials that do not match."""

    status_code = 401
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AgriScienceError):
    """Credential invalid/expired, or a premium feature without entitlement."""

    status_code = 403


class NotFoundError(AgriScienceError):
    status_code = 404


class ValidationFailedError(AgriScienceError):
    """Input that does not match the declared schema. Carries per-field details."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    def body(self) -> dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class ConflictError(AgriScienceError):
    """Duplicate of something that must be unique (e.g. a registered email)."""

    status_code = 409


class ExternalServiceUnavailable(AgriScienceError):
    """An upstream lookup failed. Recovered locally, never sent to clients."""

    status_code = 503


def _summarize(errors: list[dict]) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that turn every error into a {"message"} body."""

    @app.exception_handler(AgriScienceError)
    async def _domain_error(request: Request, exc: AgriScienceError):
        return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        failure = ValidationFailedError(
            _summarize(errors),
            errors=jsonable_encoder(
                [{k: e[k] for k in ("loc", "msg", "type") if k in e} for e in errors]
            ),
        )
        return await _domain_error(request, failure)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception):
        logger.exception("http.unhandled_error", path=request.url.path)
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})
