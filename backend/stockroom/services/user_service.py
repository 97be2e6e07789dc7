# backend/stockroom/services/user_service.py
"""
User account management.

Deleting a user deactivates the account (is_active=False) and revokes its
sessions; the row stays so purchases and sells keep their attribution.
"""
from __future__ import annotations

from ..extensions import db
from ..models import User
from ..validation import ConflictError, NotFoundError, enforce_rules_user
from . import auth_service, session_service
from .permission_service import require_access
from .query_service import ListQuery, apply_list_query

USER_MUTABLE_FIELDS = {"username", "email", "first_name", "last_name", "image", "role", "is_active"}

# Only holders of MANAGE_USERS may touch these, even on their own account
PRIVILEGED_FIELDS = {"role", "is_active"}


def get_user(actor: User, user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("user not found")
    if user.id != actor.id:
        require_access(actor, "VIEW_USERS")
    return user


def list_users(lq: ListQuery) -> tuple[list[User], dict]:
    return apply_list_query(db.session.query(User), User, lq)


def _ensure_unique(user: User | None, patch: dict) -> None:
    for field in ("username", "email"):
        if field not in patch:
            continue
        q = db.session.query(User).filter(getattr(User, field) == patch[field])
        if user is not None:
            q = q.filter(User.id != user.id)
        if q.first() is not None:
            raise ConflictError(f"{field} already exists")


def update_user(actor: User, user_id: int, patch: dict, password: str | None = None) -> User:
    """
    Apply a validated patch. Users may edit their own profile; editing anyone
    else, or changing role/is_active, needs MANAGE_USERS.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("user not found")

    if user.id != actor.id or PRIVILEGED_FIELDS & patch.keys():
        require_access(actor, "MANAGE_USERS")

    enforce_rules_user(patch)
    _ensure_unique(user, patch)
    password_hash = auth_service.hash_password(password) if password is not None else None

    for k, v in patch.items():
        if k in USER_MUTABLE_FIELDS:
            setattr(user, k, v)
    if password_hash is not None:
        user.password_hash = password_hash

    db.session.commit()
    if user.is_active is False:
        session_service.revoke_all_user_sessions(user.id)
    return user


def deactivate_user(actor: User, user_id: int) -> User:
    require_access(actor, "MANAGE_USERS")
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("user not found")
    if user.id == actor.id:
        raise ConflictError("You cannot deactivate your own account")

    user.is_active = False
    db.session.commit()
    session_service.revoke_all_user_sessions(user.id)
    return user

