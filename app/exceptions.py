# =============================================================================
# app/exceptions.py - Custom Exceptions & Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every failure leaves the API as {"success": false, "error": ..., "code": ...}
# so the client can branch on `success` without inspecting status codes.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class BilleteraException(Exception):
    """
    Base exception for the Billetera API.

    All domain exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "BILLETERA_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "success": False,
            "error": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = jsonable_encoder(self.details)
        return result


# =============================================================================
# Generic Exceptions
# =============================================================================

class InvalidInputError(BilleteraException):
    """Raised when a request breaks a business rule (400)."""

    def __init__(
        self,
        message: str,
        code: str = "INVALID_INPUT",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=400,
            suggestion=suggestion,
            details=details,
        )


class PermissionDeniedError(BilleteraException):
    """Raised when the user can see a resource but not act on it (403)."""

    def __init__(
        self,
        message: str,
        code: str = "PERMISSION_DENIED",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=403,
            suggestion=suggestion,
            details=details,
        )


class ResourceNotFoundError(BilleteraException):
    """Raised when a resource doesn't exist or has been soft-deleted (404)."""

    def __init__(self, resource: str, resource_id: str | None = None, code: str | None = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{message}: {resource_id}"
        super().__init__(
            message=message,
            code=code or f"{resource.upper().replace(' ', '_')}_NOT_FOUND",
            status_code=404,
            suggestion=f"Check that the {resource.lower()} id is correct and it hasn't been deleted",
            details={"id": resource_id} if resource_id else None,
        )


class ConflictError(BilleteraException):
    """Raised when the request would duplicate existing state (409)."""

    def __init__(self, message: str, code: str = "CONFLICT", details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details=details,
        )


# =============================================================================
# Wallet / Envelope Exceptions
# =============================================================================

class WalletNotFoundError(ResourceNotFoundError):
    """Raised when a wallet ID doesn't exist."""

    def __init__(self, wallet_id: str):
        super().__init__("Wallet", str(wallet_id))


class EnvelopeNotFoundError(ResourceNotFoundError):
    """Raised when an envelope ID doesn't exist."""

    def __init__(self, envelope_id: str):
        super().__init__("Envelope", str(envelope_id))


class InsufficientBudgetError(BilleteraException):
    """Raised when an envelope doesn't have enough free budget for a move."""

    def __init__(self, available: float, requested: float):
        super().__init__(
            message=f"Insufficient free budget: available {available}, requested {requested}",
            code="INSUFFICIENT_BUDGET",
            status_code=400,
            suggestion="Assign more budget to the source envelope or move a smaller amount",
            details={"available": available, "requested": requested},
        )


# =============================================================================
# Subscription Exceptions
# =============================================================================

class PlanLimitReachedError(BilleteraException):
    """Raised when creating a resource would exceed the plan's limit."""

    def __init__(self, resource_key: str, limit: int):
        super().__init__(
            message=f"Plan limit reached for {resource_key} (max: {limit})",
            code="PLAN_LIMIT_REACHED",
            status_code=403,
            suggestion="Upgrade your plan to create more",
            details={"resource": resource_key, "limit": limit},
        )


class PaymentNotAvailableError(BilleteraException):
    """Raised when an upgrade needs a payment provider that isn't wired up."""

    def __init__(self):
        super().__init__(
            message="Payment integration is not available",
            code="PAYMENT_NOT_AVAILABLE",
            status_code=501,
            suggestion="Set PAYMENT_MODE=sandbox to apply upgrades directly",
        )


# =============================================================================
# User Config Exceptions
# =============================================================================

class OnboardingRequiredError(BilleteraException):
    """Raised when the user hasn't created their configuration yet."""

    def __init__(self):
        super().__init__(
            message="User configuration not found",
            code="CONFIG_NOT_FOUND",
            status_code=404,
            suggestion="Create the configuration with POST /api/user/config",
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["requires_onboarding"] = True
        return result


# =============================================================================
# Exception Handlers
# =============================================================================

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


async def billetera_exception_handler(
    request: Request,
    exc: BilleteraException
) -> JSONResponse:
    """
    Convert BilleteraException to JSON response.

    Returns structured error with:
    - error: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException
) -> JSONResponse:
    """Keep FastAPI's HTTPException (auth failures, 404 routes) in the same shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": str(exc.detail),
            "code": HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        },
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Malformed bodies and query strings are client errors, so they map to
    400 instead of FastAPI's default 422.
    """
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Validation error",
            "code": "VALIDATION_ERROR",
            "errors": jsonable_encoder(exc.errors(), custom_encoder={Exception: str}),
        }
    )
