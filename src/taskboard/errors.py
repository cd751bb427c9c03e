"""Error taxonomy and its HTTP mapping.

Learn: Services raise these domain errors instead of HTTPException so
the same code works from the API, the CLI, and tests. The app factory
registers handlers (register_exception_handlers) that turn each error
into a JSON body with a stable machine-readable ``code``.

Authentication failures all surface as 401 but keep distinct classes,
so logs can tell a missing header from an expired token.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger()


class TaskboardError(Exception):
    """Base class for every error the API reports to callers."""

    status_code: int = 400
    code: str = "error"
    detail: str = "Request failed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.detail
        super().__init__(self.detail)

    def as_dict(self) -> dict:
        return {"detail": self.detail, "code": self.code}


# ─── Authentication (401) ────────────────────────────────


class AuthenticationError(TaskboardError):
    status_code = 401
    code = "unauthorized"
    detail = "Authentication required"


class MissingCredential(AuthenticationError):
    code = "missing_credential"
    detail = "Authorization header is missing"


class MalformedCredential(AuthenticationError):
    code = "malformed_credential"
    detail = "Invalid authorization header format"


class ExpiredCredential(AuthenticationError):
    code = "expired_credential"
    detail = "Token has expired"


class InvalidCredential(AuthenticationError):
    code = "invalid_credential"
    detail = "Invalid token"


# ─── Authorization (403) ─────────────────────────────────


class InsufficientRole(TaskboardError):
    status_code = 403
    code = "insufficient_role"
    detail = "You do not have the required role for this operation"


# ─── Scoping ─────────────────────────────────────────────


class NotFound(TaskboardError):
    status_code = 404
    code = "not_found"
    detail = "Resource not found"

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} with ID {record_id} not found")


class Forbidden(TaskboardError):
    status_code = 403
    code = "forbidden"
    detail = "You do not have access to this resource"


class DanglingReference(TaskboardError):
    """One or more referenced IDs do not resolve to existing records."""

    status_code = 422
    code = "dangling_reference"

    def __init__(self, missing: dict[str, list[str]]):
        # kind ("user", "project") -> missing IDs, in request order
        self.missing = {k: list(v) for k, v in missing.items() if v}
        super().__init__(
            "; ".join(
                f"The following {kind} IDs do not exist: {', '.join(ids)}"
                for kind, ids in self.missing.items()
            )
        )

    @property
    def missing_ids(self) -> list[str]:
        return [i for ids in self.missing.values() for i in ids]

    def as_dict(self) -> dict:
        body = super().as_dict()
        body["missing"] = self.missing
        return body


# ─── Everything else ─────────────────────────────────────


class Conflict(TaskboardError):
    status_code = 409
    code = "conflict"
    detail = "Resource already exists"


class InvalidRequest(TaskboardError):
    status_code = 400
    code = "invalid_request"


class InternalFailure(TaskboardError):
    status_code = 500
    code = "internal_error"
    detail = "Internal server error"


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors (and stray storage errors) to JSON responses."""

    @app.exception_handler(TaskboardError)
    async def _taskboard_error_handler(request: Request, exc: TaskboardError):
        headers = None
        if isinstance(exc, AuthenticationError):
            headers = {"WWW-Authenticate": "Bearer"}
        return JSONResponse(
            status_code=exc.status_code, content=exc.as_dict(), headers=headers
        )

    @app.exception_handler(SQLAlchemyError)
    async def _storage_error_handler(request: Request, exc: SQLAlchemyError):
        # Log the real cause with context; the caller only sees a generic 500.
        logger.error(
            "storage.error",
            method=request.method,
            path=request.url.path,
            path_params=dict(request.path_params),
            error=str(exc),
            exc_type=type(exc).__name__,
        )
        failure = InternalFailure()
        return JSONResponse(status_code=failure.status_code, content=failure.as_dict())
