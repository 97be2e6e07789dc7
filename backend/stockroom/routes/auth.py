# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockroom/routes/auth.py
"""
Authentication API routes

- Self-registration as "user" is open; admin/staff/coordinator need the
  matching unlock code (ADMIN_CODE / STAFF_CODE / COORDINATOR_CODE)
- Login returns an access/refresh bearer pair
- Refresh rotates the pair; logout revokes the session
"""

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth
from ..models import User
from ..responses import data_response, error_response
from ..services import auth_service, permission_service, session_service
from ..services.auth_service import PasswordValidationError
from ..services.permission_service import PermissionDeniedError
from ..validation import ConflictError, ModelValidationPolicy, ValidationError, validate_payload

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

REGISTER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "email", "first_name", "last_name", "image"},
    required_on_create={"username", "email"},
)


def _login_payload(user: User, pair) -> dict:
    return {
        "error": False,
        "message": "Login successful",
        "bearer": pair.to_dict(),
        "user": user.to_dict(),
        "permissions": sorted(permission_service.user_permissions(user)),
    }


@auth_bp.post("/register")
def register_route():
    """
    Create an account and log it in.

    Body: {username, email, password, first_name?, last_name?, image?,
           role?, role_code?}
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return error_response("Invalid JSON payload", 400)
    payload = dict(payload)
    password = payload.pop("password", None)
    requested_role = payload.pop("role", None)
    role_code = payload.pop("role_code", None)

    if not password:
        return error_response("password is required", 400)

    try:
        patch = validate_payload(model=User, payload=payload, policy=REGISTER_POLICY, partial=False)
        role = auth_service.resolve_registration_role(requested_role, role_code)
        user = auth_service.create_user(
            username=patch["username"],
            email=patch["email"],
            password=password,
            role=role,
            first_name=patch.get("first_name"),
            last_name=patch.get("last_name"),
            image=patch.get("image"),
        )
        _, pair = session_service.create_session(
            user,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except (ValidationError, PasswordValidationError) as e:
        return error_response(str(e), 400)
    except PermissionDeniedError as e:
        return error_response(str(e), 403)
    except ConflictError as e:
        return error_response(str(e), 409)
    except Exception:
        current_app.logger.exception("Failed to register user")
        return error_response("Internal server error", 500)

    body = _login_payload(user, pair)
    body["message"] = "Registration successful"
    return body, 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate by username (or email) and password.

    Returns {"bearer": {"access_token", "refresh_token"}, "user": {...}}.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return error_response("Invalid JSON payload", 400)
    username = data.get("username") or data.get("email")
    password = data.get("password")

    if not username or not password:
        return error_response("username/email and password required", 400)
    if not isinstance(username, str) or not isinstance(password, str):
        return error_response("username/email and password must be strings", 400)

    try:
        user = auth_service.authenticate(username, password)
        if not user:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                action="LOGIN",
                reason=f"Invalid credentials for {username[:64]}",
            )
            return error_response("Invalid credentials", 401)

        _, pair = session_service.create_session(
            user,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except Exception:
        current_app.logger.exception("Failed to login user")
        return error_response("Internal server error", 500)

    return _login_payload(user, pair), 200


@auth_bp.post("/refresh")
def refresh_route():
    """Exchange a refresh token for a new pair; the old pair stops working."""
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return error_response("Invalid JSON payload", 400)
    refresh_token = data.get("refresh_token")
    if not refresh_token or not isinstance(refresh_token, str):
        return error_response("refresh_token is required", 400)

    result = session_service.refresh_session(refresh_token)
    if result is None:
        return error_response("Invalid or expired refresh token", 401)

    session, pair = result
    return _login_payload(session.user, pair), 200


@auth_bp.route("/logout", methods=["GET", "POST"])
@require_auth
def logout_route():
    session_service.revoke_session(g.access_token)
    permission_service.log_security_event(
        user_id=g.current_user.id,
        event_type="LOGOUT",
        success=True,
        action="LOGOUT",
    )
    return {"error": False, "message": "Logged out"}, 200


@auth_bp.get("/me")
@require_auth
def me_route():
    user = g.current_user
    return data_response(
        {
            "user": user.to_dict(),
            "permissions": sorted(permission_service.user_permissions(user)),
        }
    )
