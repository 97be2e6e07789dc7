# Overview: Flask API routes for user accounts; parses input and returns JSON responses.

# backend/stockroom/routes/users.py
"""
User management routes.

SECURITY:
- Listing requires VIEW_USERS; reading your own record needs nothing extra
- Creating users, editing other users and changing role/is_active require MANAGE_USERS
- DELETE deactivates the account and revokes its sessions
"""
from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..models import User
from ..responses import data_response, error_response, list_response
from ..services import auth_service, user_service
from ..services.query_service import parse_list_args
from ..validation import ModelValidationPolicy, validate_payload
from .errors import domain_error_response

USER_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"username", "email", "first_name", "last_name", "image", "role"},
    required_on_create={"username", "email"},
)
USER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=set(user_service.USER_MUTABLE_FIELDS),
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _handle(exc: Exception, action: str):
    resp = domain_error_response(exc)
    if resp is not None:
        return resp
    current_app.logger.exception("Failed to %s user", action)
    return error_response("Internal server error", 500)


@users_bp.get("")
@require_auth
@require_permission("VIEW_USERS")
def list_users():
    try:
        lq = parse_list_args(request.args, User, default_limit=current_app.config["PAGE_SIZE"])
        rows, details = user_service.list_users(lq)
    except Exception as e:
        return _handle(e, "list")
    return list_response([u.to_dict() for u in rows], details)


@users_bp.get("/<int:user_id>")
@require_auth
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(g.current_user, user_id)
    except Exception as e:
        return _handle(e, "read")
    return data_response(user.to_dict())


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    """Admin-side account creation; any role may be assigned, no unlock code needed."""
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return error_response("Invalid JSON payload", 400)
    payload = dict(payload)
    password = payload.pop("password", None)
    if not password:
        return error_response("password is required", 400)

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_CREATE_POLICY, partial=False)
        user = auth_service.create_user(password=password, **patch)
    except Exception as e:
        return _handle(e, "create")
    return data_response(user.to_dict(), 201)


@users_bp.route("/<int:user_id>", methods=["PUT", "PATCH"])
@require_auth
def update_user_route(user_id: int):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return error_response("Invalid JSON payload", 400)
    payload = dict(payload)
    password = payload.pop("password", None)

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_UPDATE_POLICY, partial=True)
        user = user_service.update_user(g.current_user, user_id, patch, password=password)
    except Exception as e:
        return _handle(e, "update")
    return data_response(user.to_dict())


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user_route(user_id: int):
    try:
        user_service.deactivate_user(g.current_user, user_id)
    except Exception as e:
        return _handle(e, "deactivate")
    return {"error": False, "message": "User deactivated"}, 200
