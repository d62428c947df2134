"""
Exception types and global exception handlers for the FastAPI application.
"""
import traceback
from typing import Any, List, Optional
from fastapi import Request, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
import structlog

logger = structlog.get_logger("exceptions")


class APIException(Exception):
    """Base API exception class."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "Internal server error",
        headers: dict = None
    ):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.headers = headers or {}

    def to_content(self) -> dict:
        return {
            "type": type(self).__name__,
            "message": self.detail,
            "status_code": self.status_code,
        }


class DatabaseException(APIException):
    """Unexpected store failure."""

    def __init__(self, detail: str = "Database operation failed"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail
        )


class AuthenticationException(APIException):
    """Missing or invalid credentials."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"}
        )


class AuthorizationException(APIException):
    """Authenticated caller lacks the required role."""

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class ValidationException(APIException):
    """Malformed or missing input, optionally naming the offending field."""

    def __init__(self, detail: str = "Validation failed", field: Optional[str] = None, errors: List[Any] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )
        self.field = field
        self.errors = errors or []

    def to_content(self) -> dict:
        content = super().to_content()
        if self.field:
            content["field"] = self.field
        if self.errors:
            content["details"] = self.errors
        return content


class ConflictException(APIException):
    """Uniqueness violation: duplicate title, email or relation."""

    def __init__(self, detail: str = "Resource already exists", field: Optional[str] = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )
        self.field = field

    def to_content(self) -> dict:
        content = super().to_content()
        if self.field:
            content["field"] = self.field
        return content


class ResourceNotFoundException(APIException):
    """Operation targets a nonexistent id."""

    def __init__(self, detail: str = "Resource not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail
        )


class ExternalServiceException(APIException):
    """An outbound collaborator (GitHub, SMTP) failed."""

    def __init__(self, detail: str = "External service error", service: str = None):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail
        )
        self.service = service


def _request_context(request: Request) -> dict:
    return {
        "path": str(request.url.path),
        "method": request.method,
        "client_host": request.client.host if request.client else None,
    }


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    """Handle custom API exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "API exception occurred",
        exception_type=type(exc).__name__,
        status_code=exc.status_code,
        detail=exc.detail,
        **_request_context(request)
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.to_content()},
        headers=exc.headers
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        **_request_context(request)
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "type": "HTTPException",
                "message": exc.detail,
                "status_code": exc.status_code
            }
        },
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    errors = jsonable_encoder(exc.errors())
    logger.warning(
        "Validation error occurred",
        errors=errors,
        **_request_context(request)
    )

    field = None
    if errors:
        loc = [str(part) for part in errors[0].get("loc", []) if part not in ("body", "query", "path")]
        field = ".".join(loc) or None

    content = {
        "type": "ValidationError",
        "message": "Request validation failed",
        "status_code": status.HTTP_400_BAD_REQUEST,
        "details": errors,
    }
    if field:
        content["field"] = field
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": content})


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy database exceptions."""
    logger.error(
        "Database error occurred",
        exception_type=type(exc).__name__,
        error_detail=str(exc),
        **_request_context(request)
    )

    if isinstance(exc, IntegrityError):
        error_type = "ConflictException"
        detail = "Database constraint violation"
        status_code = status.HTTP_409_CONFLICT
    else:
        error_type = "DatabaseError"
        detail = "Database operation failed"
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "type": error_type,
                "message": detail,
                "status_code": status_code
            }
        }
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all other uncaught exceptions."""
    logger.error(
        "Unhandled exception occurred",
        exception_type=type(exc).__name__,
        error_detail=str(exc),
        traceback=traceback.format_exc(),
        **_request_context(request)
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "type": "InternalServerError",
                "message": "An unexpected error occurred",
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR
            }
        }
    )


def setup_exception_handlers(app):
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(APIException, api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
