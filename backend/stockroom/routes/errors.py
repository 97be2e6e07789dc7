# Overview: Maps service-layer exceptions to JSON error responses for trade routes.

from ..responses import error_response
from ..services.auth_service import PasswordValidationError
from ..services.inventory_service import InsufficientStockError
from ..services.permission_service import PermissionDeniedError
from ..services.reporting_service import ReportError
from ..validation import ConflictError, NotFoundError, ValidationError


def domain_error_response(exc: Exception):
    """Response for a known domain error, or None if exc is unexpected."""
    if isinstance(exc, (ValidationError, PasswordValidationError, ReportError)):
        return error_response(str(exc), 400)
    if isinstance(exc, PermissionDeniedError):
        return error_response("Permission denied", 403, required_permission=exc.action, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return error_response(str(exc), 404)
    if isinstance(exc, InsufficientStockError):
        return error_response(str(exc), 409, available=exc.available, requested=exc.requested)
    if isinstance(exc, ConflictError):
        return error_response(str(exc), 409)
    return None
