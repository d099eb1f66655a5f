"""Problem Details (RFC 9457) exceptions and their FastAPI handlers.

Every error a client can see is a ``ProblemDetailsException``. The body is
built once, at construction, so services can inspect ``problem_details``
in tests exactly as the client will receive it.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

PROBLEM_TYPE_BASE = "https://example.com/problems/"


def _timestamp() -> str:
    return datetime.now(timezone.utc).replace(tzinfo=None).isoformat() + "Z"


def problem_type(slug: str) -> str:
    return f"{PROBLEM_TYPE_BASE}{slug}"


class ProblemDetailsException(HTTPException):
    """
    Base class for errors rendered as ``application/problem+json``.

    Args:
        status_code: HTTP status code
        title: Short summary shared by every occurrence of the problem type
        detail: Explanation of this occurrence, shown to the customer
        type_uri: Problem type URI; ``about:blank#<status>`` when omitted
        instance: URI of this occurrence
        code: Stable machine-readable error code
        retryable: Whether repeating the same request can succeed
        extensions: Extra members merged into the body
        headers: Response headers
    """

    def __init__(
        self,
        status_code: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: Optional[str] = None,
        instance: Optional[str] = None,
        code: Optional[str] = None,
        retryable: Optional[bool] = None,
        extensions: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.title = title
        self.type_uri = type_uri or f"about:blank#{status_code}"

        body: Dict[str, Any] = {"type": self.type_uri, "title": title, "status": status_code}
        optional = {"detail": detail, "instance": instance, "code": code, "retryable": retryable}
        body.update({key: value for key, value in optional.items() if value is not None})
        body.update(extensions or {})
        self.problem_details = body

        super().__init__(status_code=status_code, detail=body, headers=headers)

    @property
    def message(self) -> str:
        """User-facing message for inline rendering."""
        return self.problem_details.get("detail") or self.title


class ValidationError(ProblemDetailsException):
    """400: the request is well-formed but its values are not acceptable."""

    def __init__(
        self,
        detail: str = "The request data failed validation",
        errors: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
        instance: Optional[str] = None,
    ):
        super().__init__(
            status_code=400,
            title="Validation Error",
            detail=detail,
            type_uri=problem_type("validation-error"),
            instance=instance,
            code=code,
            extensions={"errors": errors} if errors else None,
        )


class AuthenticationError(ProblemDetailsException):
    """401: missing or invalid bearer token."""

    def __init__(self, detail: str = "Authentication credentials are required"):
        super().__init__(
            status_code=401,
            title="Authentication Required",
            detail=detail,
            type_uri=problem_type("authentication-required"),
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(ProblemDetailsException):
    """403: authenticated, but without the required role."""

    def __init__(
        self,
        detail: str = "Insufficient permissions to access this resource",
        required_permissions: Optional[list] = None,
    ):
        super().__init__(
            status_code=403,
            title="Access Forbidden",
            detail=detail,
            type_uri=problem_type("access-forbidden"),
            extensions={"required_permissions": required_permissions} if required_permissions else None,
        )


class NotFoundError(ProblemDetailsException):
    """404 for a car, enquiry or booking session."""

    def __init__(
        self,
        resource_type: str = "resource",
        resource_id: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        if not detail:
            subject = f"{resource_type} with ID '{resource_id}'" if resource_id else resource_type
            detail = f"The requested {subject} could not be found"

        extensions = {"resource_type": resource_type}
        if resource_id:
            extensions["resource_id"] = resource_id

        super().__init__(
            status_code=404,
            title="Resource Not Found",
            detail=detail,
            type_uri=problem_type("resource-not-found"),
            extensions=extensions,
        )


class ConflictError(ProblemDetailsException):
    """409: the request clashes with the booking's current state."""

    def __init__(
        self,
        detail: str = "The request conflicts with the current state of the resource",
        conflicting_resource: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
        retryable: Optional[bool] = None,
    ):
        super().__init__(
            status_code=409,
            title="Resource Conflict",
            detail=detail,
            type_uri=problem_type("resource-conflict"),
            code=code,
            retryable=retryable,
            extensions={"conflicting_resource": conflicting_resource} if conflicting_resource else None,
        )


class RateLimitError(ProblemDetailsException):
    """429 with ``Retry-After`` when the wait is known."""

    def __init__(
        self,
        detail: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        limit: Optional[int] = None,
        window: Optional[int] = None,
    ):
        extensions: Dict[str, Any] = {}
        headers: Dict[str, str] = {}
        if limit:
            extensions["limit"] = limit
        if window:
            extensions["window_seconds"] = window
        if retry_after:
            extensions["retry_after_seconds"] = retry_after
            headers["Retry-After"] = str(retry_after)

        super().__init__(
            status_code=429,
            title="Rate Limit Exceeded",
            detail=detail,
            type_uri=problem_type("rate-limit-exceeded"),
            retryable=True,
            extensions=extensions,
            headers=headers or None,
        )


class ServiceUnavailableError(ProblemDetailsException):
    """503: a collaborator such as the fleet store could not answer."""

    def __init__(
        self,
        detail: str = "The service is temporarily unavailable",
        dependency: Optional[str] = None,
    ):
        super().__init__(
            status_code=503,
            title="Service Unavailable",
            detail=detail,
            type_uri=problem_type("service-unavailable"),
            retryable=True,
            extensions={"dependency": dependency} if dependency else None,
        )


class InternalServerError(ProblemDetailsException):
    """500 carrying an error id to correlate with the logs."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred while processing the request",
        error_id: Optional[str] = None,
    ):
        super().__init__(
            status_code=500,
            title="Internal Server Error",
            detail=detail,
            type_uri=problem_type("internal-server-error"),
            extensions={"error_id": error_id or str(uuid.uuid4()), "timestamp": _timestamp()},
        )


# Booking domain errors

class MinimumDurationError(ValidationError):
    """Trip shorter than the minimum rental period."""

    def __init__(self, total_hours: int, minimum_hours: int = 48):
        self.total_hours = total_hours
        self.minimum_hours = minimum_hours
        super().__init__(
            detail=f"Minimum rental period is {minimum_hours // 24} days ({minimum_hours} hours).",
            code="MINIMUM_DURATION",
            errors={"total_hours": total_hours, "minimum_hours": minimum_hours},
        )


class InvalidScheduleError(ValidationError):
    """Pickup or drop date/time that cannot be parsed."""

    def __init__(self, field: str, value: str):
        super().__init__(
            detail=f"Invalid {field.replace('_', ' ')}: '{value}'",
            code="INVALID_SCHEDULE",
            errors={"field": field, "value": value},
        )


class PhoneValidationError(ValidationError):
    def __init__(self, phone: str):
        super().__init__(
            detail="Please enter a valid 10-digit phone number.",
            code="INVALID_PHONE",
            errors={"customer_phone": phone},
        )


class StepGateError(ProblemDetailsException):
    """A booking step was acted on before its prerequisites were met."""

    def __init__(self, requested_step: str, resolved_step: str, reason: str):
        self.requested_step = requested_step
        self.resolved_step = resolved_step
        super().__init__(
            status_code=409,
            title="Booking Step Unavailable",
            detail=reason,
            type_uri=problem_type("booking-step-redirect"),
            code="STEP_REDIRECT",
            retryable=False,
            extensions={"requested_step": requested_step, "redirect_to": resolved_step},
        )


class PaymentInProgressError(ConflictError):
    def __init__(self, session_id: str):
        super().__init__(
            detail="A payment for this booking is already in progress",
            conflicting_resource={"session_id": session_id},
            code="PAYMENT_IN_PROGRESS",
            retryable=True,
        )


class EnquiryRateLimitError(RateLimitError):
    """Too many availability enquiries from one phone number."""

    def __init__(self, phone: str, limit: int, window_seconds: int):
        super().__init__(
            detail=f"Too many enquiries from {phone}. Please try again later.",
            retry_after=window_seconds,
            limit=limit,
            window=window_seconds,
        )


async def problem_details_handler(request: Request, exc: ProblemDetailsException) -> JSONResponse:
    """Render a ``ProblemDetailsException``; ``instance`` defaults to the request path."""
    content = {"instance": request.url.path, **exc.problem_details}
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=exc.headers,
        media_type="application/problem+json",
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: any unhandled exception becomes an opaque 500 problem."""
    problem = InternalServerError()
    return JSONResponse(
        status_code=500,
        content={"instance": request.url.path, **problem.problem_details},
        media_type="application/problem+json",
    )
