# Overview: Service-layer operations for permission checks and the security event log.

"""
Role-Based Access Control with Self-Scoping

Fail closed: a role grants exactly the codes listed in
stockroom.permissions.roles; unknown roles get nothing.

Some actions have an "own" variant (see OWNED_VARIANTS). A role that lacks
the broad code but holds the own variant may still perform the action on a
record whose owner ids include the caller.

Only denials are logged to security_events.
"""

from __future__ import annotations

from flask import has_request_context, request

from ..extensions import db
from ..models import SecurityEvent
from ..permissions import OWNED_VARIANTS, get_role_permissions
from ..time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when the caller may not perform an action."""

    def __init__(self, message: str, *, action: str | None = None):
        super().__init__(message)
        self.action = action


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Append an event to the security audit log and commit it.

    Request metadata is filled in from the active request when not given.

    event_type examples:
    - PERMISSION_DENIED
    - LOGIN_FAILED
    - LOGOUT
    - REGISTRATION_DENIED
    """
    if has_request_context():
        ip_address = ip_address or request.remote_addr
        user_agent = user_agent or request.headers.get("User-Agent")
        resource = resource or request.path

    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=(user_agent or "")[:255] or None,
        occurred_at=utcnow(),
    )
    db.session.add(event)
    db.session.commit()
    return event


def user_permissions(user) -> frozenset[str]:
    if user is None or not user.is_active:
        return frozenset()
    return get_role_permissions(user.role)


def can_access(user, action: str, owner_ids=None) -> bool:
    """
    True when the role grants action outright, or when action has an "own"
    variant the role holds and user.id is among owner_ids.
    """
    granted = user_permissions(user)
    if action in granted:
        return True
    owned = OWNED_VARIANTS.get(action)
    if owned and owned in granted and owner_ids:
        return user.id in set(owner_ids)
    return False


def require_access(user, action: str, owner_ids=None, resource: str | None = None) -> None:
    """
    Raise PermissionDeniedError (and log the denial) unless can_access().

    Usage:
        require_access(g.current_user, "MODIFY_ANY_TRADE", owner_ids=purchase.owner_ids())
    """
    if can_access(user, action, owner_ids):
        return

    log_security_event(
        user_id=user.id if user is not None else None,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=action,
        reason=f"Missing permission: {action}",
    )
    raise PermissionDeniedError(f"Permission denied: {action}", action=action)


def sees_all_trades(user) -> bool:
    return "VIEW_ALL_TRADES" in user_permissions(user)
