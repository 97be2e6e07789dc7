# Overview: Service-layer operations for auth; password hashing, registration and login.

"""
Authentication Service

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
- Privileged roles can only be self-registered with the matching unlock code
"""

import hmac
import re

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from ..time_utils import utcnow
from ..validation import ConflictError, enforce_rules_user
from .permission_service import PermissionDeniedError, log_security_event


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


# role -> config key holding its unlock code
ROLE_CODE_KEYS = {
    "admin": "ADMIN_CODE",
    "staff": "STAFF_CODE",
    "coordinator": "COORDINATOR_CODE",
}


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[^A-Za-z0-9\s]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """Validate strength, then hash with bcrypt."""
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt comparison; malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def resolve_registration_role(requested_role: str | None, role_code: str | None) -> str:
    """
    Role granted to a self-registering user.

    "user" needs no code. admin/staff/coordinator need the configured unlock
    code; a missing or wrong code raises PermissionDeniedError.
    """
    role = requested_role or "user"
    enforce_rules_user({"role": role})
    if role == "user":
        return role

    expected = current_app.config.get(ROLE_CODE_KEYS[role]) or ""
    if not expected or not role_code or not hmac.compare_digest(
        str(role_code).encode("utf-8"), expected.encode("utf-8")
    ):
        log_security_event(
            user_id=None,
            event_type="REGISTRATION_DENIED",
            success=False,
            action=f"REGISTER_{role.upper()}",
            reason="Invalid role code",
        )
        raise PermissionDeniedError(f"A valid code is required to register as {role}")
    return role


def create_user(
    username: str,
    email: str,
    password: str,
    role: str = "user",
    first_name: str | None = None,
    last_name: str | None = None,
    image: str | None = None,
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ValidationError: invalid email or role
        ConflictError: username or email already taken
        PasswordValidationError: weak password
    """
    enforce_rules_user({"email": email, "role": role})

    existing = db.session.query(User).filter(
        db.or_(User.username == username, User.email == email)
    ).first()
    if existing:
        raise ConflictError("Username or email already exists")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        first_name=first_name,
        last_name=last_name,
        image=image,
    )
    db.session.add(user)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate by username or email.

    Returns the User when credentials are valid and the account is active,
    None otherwise. Updates last_login_at on success.
    """
    user = db.session.query(User).filter(
        db.or_(User.username == username, User.email == username),
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None

