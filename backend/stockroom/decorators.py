# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import g, request

from .responses import error_response
from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a valid access token.

    Sets:
    - g.current_user: the authenticated User
    - g.session_context: the SessionContext
    - g.access_token: the plaintext bearer token

    Returns 401 if the header is missing, or the token is unknown, expired,
    revoked, or belongs to a deactivated user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if token is None:
            return error_response("Authentication required", 401)

        context = session_service.validate_session(token)
        if not context:
            return error_response("Invalid or expired token", 401)

        g.current_user = context.user
        g.session_context = context
        g.access_token = token
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a permission granted by the caller's role.

    Must be stacked under @require_auth. Denials are logged to
    security_events by permission_service.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return error_response("Authentication required", 401)

            try:
                permission_service.require_access(g.current_user, permission_code)
            except PermissionDeniedError as e:
                return error_response(
                    "Permission denied",
                    403,
                    required_permission=permission_code,
                    detail=str(e),
                )

            return f(*args, **kwargs)

        return decorated_function
    return decorator
