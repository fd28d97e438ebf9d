"""
Problem+json errors for the survey API (RFC 7807).

Every failure leaves the API as the same body: a type URI, a title for the
status, the occurrence detail, a stable ``code`` clients switch on and the
request's trace id so a user report can be matched to the log lines.

See: https://datatracker.ietf.org/doc/html/rfc7807
"""

from typing import Optional, Dict, Any, List
from enum import Enum
from pydantic import BaseModel
from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import SQLAlchemyError
import logging
from datetime import datetime, timezone

from app.middleware.request_id import get_request_id, generate_id

logger = logging.getLogger(__name__)

PROBLEM_TYPE_BASE = "https://survey-studio.dev/problems"


class ErrorCode(str, Enum):
    """Machine-readable codes, grouped by prefix."""

    # Request body or query rejected
    VALIDATION_ERROR = "VAL_001"

    # Survey or response lookups
    NOT_FOUND = "RES_001"

    # e.g. synthesizing a survey nobody answered
    BUSINESS_RULE_VIOLATION = "BIZ_001"

    # Generation service and database
    EXTERNAL_SERVICE_ERROR = "EXT_001"
    AI_SERVICE_ERROR = "EXT_003"
    DATABASE_ERROR = "EXT_004"

    # Model replied with something that is not a survey
    GENERATION_PARSE_ERROR = "GEN_001"

    INTERNAL_ERROR = "SRV_001"
    SERVICE_UNAVAILABLE = "SRV_002"


# status -> (title, code used when nothing more specific is known)
STATUS_PROBLEMS = {
    400: ("Bad Request", ErrorCode.VALIDATION_ERROR),
    404: ("Not Found", ErrorCode.NOT_FOUND),
    405: ("Method Not Allowed", ErrorCode.VALIDATION_ERROR),
    422: ("Validation Error", ErrorCode.VALIDATION_ERROR),
    500: ("Internal Server Error", ErrorCode.INTERNAL_ERROR),
    502: ("Bad Gateway", ErrorCode.EXTERNAL_SERVICE_ERROR),
    503: ("Service Unavailable", ErrorCode.SERVICE_UNAVAILABLE),
}


def _trace_id() -> str:
    request_id = get_request_id()
    if request_id and request_id != "unknown":
        return request_id
    return generate_id()


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


class ProblemDetail(BaseModel):
    """Body of every error response."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    instance: Optional[str] = None
    code: str
    timestamp: str
    trace_id: str
    errors: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def build(
        cls,
        status: int,
        code: ErrorCode,
        detail: str,
        instance: Optional[str] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        trace_id: Optional[str] = None,
    ) -> "ProblemDetail":
        title, _ = STATUS_PROBLEMS.get(status, ("Error", ErrorCode.INTERNAL_ERROR))
        return cls(
            type=f"{PROBLEM_TYPE_BASE}/{code.value.lower().replace('_', '-')}",
            title=title,
            status=status,
            detail=detail,
            instance=instance,
            code=code.value,
            timestamp=_now(),
            trace_id=trace_id or _trace_id(),
            errors=errors,
        )


class SurveyAppException(HTTPException):
    """Base for errors raised by services and routes.

    Subclasses pin the status and code; raising sites only say what went
    wrong.
    """

    status = 500
    code = ErrorCode.INTERNAL_ERROR

    def __init__(
        self,
        detail: str,
        code: Optional[ErrorCode] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        if code is not None:
            self.code = code
        self.errors = errors
        super().__init__(status_code=self.status, detail=detail, headers=headers)


class NotFoundError(SurveyAppException):
    status = 404
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with ID {resource_id} was not found")


class ValidationError(SurveyAppException):
    status = 422
    code = ErrorCode.VALIDATION_ERROR


class BusinessRuleError(SurveyAppException):
    status = 400
    code = ErrorCode.BUSINESS_RULE_VIOLATION


class ExternalServiceError(SurveyAppException):
    """Generation service unreachable, answered non-2xx or sent an unreadable reply."""

    status = 502
    code = ErrorCode.EXTERNAL_SERVICE_ERROR

    def __init__(self, service: str, detail: str, code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR):
        self.service = service
        super().__init__(f"{service} service error: {detail}", code=code)


class GenerationParseError(SurveyAppException):
    """The model answered, but not with a usable survey.

    ``raw_content`` keeps the model output for the logs; it is never echoed
    to the client.
    """

    status = 502
    code = ErrorCode.GENERATION_PARSE_ERROR

    def __init__(self, detail: str = "Failed to parse survey data. Please try again.", raw_content: str = ""):
        self.raw_content = raw_content
        super().__init__(detail)


class PersistenceError(SurveyAppException):
    """A write failed and the store could not recover it."""

    status = 503
    code = ErrorCode.DATABASE_ERROR


def create_exception_handlers(allowed_origins: List[str]):
    """
    Build the app's exception handlers.

    Responses produced here skip CORSMiddleware, so the allowed origin is
    echoed by hand or browsers hide the error body from the frontend.

    Usage in main.py:
        handlers = create_exception_handlers(allowed_origins)
        app.add_exception_handler(SurveyAppException, handlers["survey"])
        app.add_exception_handler(SQLAlchemyError, handlers["database"])
    """

    def respond(request: Request, problem: ProblemDetail, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
        if problem.instance is None:
            problem.instance = request.url.path
        response = JSONResponse(
            status_code=problem.status,
            content=problem.model_dump(exclude_none=True),
            media_type="application/problem+json",
            headers=headers,
        )
        origin = request.headers.get("origin", "")
        if origin and origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Vary"] = "Origin"
        return response

    async def handle_survey_exception(request: Request, exc: SurveyAppException) -> JSONResponse:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.code.value} - {exc.detail}")
        if isinstance(exc, GenerationParseError) and exc.raw_content:
            logger.debug(f"Unparseable model output: {exc.raw_content[:500]}")
        problem = ProblemDetail.build(exc.status_code, exc.code, exc.detail, errors=exc.errors)
        return respond(request, problem, headers=exc.headers)

    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        _, code = STATUS_PROBLEMS.get(exc.status_code, ("Error", ErrorCode.INTERNAL_ERROR))
        problem = ProblemDetail.build(exc.status_code, code, str(exc.detail))
        return respond(request, problem, headers=getattr(exc, "headers", None))

    async def handle_validation_exception(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"],
            }
            for error in exc.errors()
        ]
        problem = ProblemDetail.build(422, ErrorCode.VALIDATION_ERROR, "Request validation failed", errors=errors)
        return respond(request, problem)

    async def handle_database_exception(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        # Not retried; the caller repeats the action
        logger.error(f"Database error on {request.url.path}: {type(exc).__name__}: {exc}")

        from app.config import settings
        detail = str(exc) if settings.DEBUG else "The database is unavailable. Please try again."
        return respond(request, ProblemDetail.build(503, ErrorCode.DATABASE_ERROR, detail))

    async def handle_generic_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled exception on {request.url.path}: {exc}")

        # Internals stay out of production bodies
        from app.config import settings
        detail = str(exc) if settings.DEBUG else "An unexpected error occurred"
        return respond(request, ProblemDetail.build(500, ErrorCode.INTERNAL_ERROR, detail))

    return {
        "survey": handle_survey_exception,
        "http": handle_http_exception,
        "validation": handle_validation_exception,
        "database": handle_database_exception,
        "generic": handle_generic_exception,
    }
