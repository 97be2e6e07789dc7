# Overview: Service-layer operations for session; issues and validates access/refresh token pairs.

"""
Session Token Management Service

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Short-lived access token (ACCESS_TOKEN_TTL_MINUTES)
- Longer-lived refresh token (REFRESH_TOKEN_TTL_DAYS); refreshing rotates both
- Revocable on logout, or when the user is deactivated
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


@dataclass
class SessionContext:
    """Result of validate_session."""
    user: User
    session: SessionToken


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str

    def to_dict(self) -> dict:
        return {"access_token": self.access_token, "refresh_token": self.refresh_token}


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy); never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 hex digest; tokens are high-entropy so no salt is needed."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _ttls() -> tuple[timedelta, timedelta]:
    cfg = current_app.config
    return (
        timedelta(minutes=cfg.get("ACCESS_TOKEN_TTL_MINUTES", 60)),
        timedelta(days=cfg.get("REFRESH_TOKEN_TTL_DAYS", 30)),
    )


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, TokenPair]:
    """
    Issue a new access/refresh pair for user.

    Returns (session_record, plaintext_pair). The client receives the
    plaintext pair; the database stores only the hashes.
    """
    access_ttl, refresh_ttl = _ttls()
    pair = TokenPair(access_token=generate_token(), refresh_token=generate_token())
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        access_token_hash=hash_token(pair.access_token),
        refresh_token_hash=hash_token(pair.refresh_token),
        created_at=now,
        last_used_at=now,
        access_expires_at=now + access_ttl,
        refresh_expires_at=now + refresh_ttl,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()
    return session, pair


def _revoke(session: SessionToken) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()


def validate_session(access_token: str) -> SessionContext | None:
    """
    Resolve an access token to its session and user.

    Returns None if the token is unknown, expired or revoked, or if the user
    has been deactivated (the session is revoked in that case).
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        access_token_hash=hash_token(access_token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    if session.access_expires_at < now:
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session)
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()
    return SessionContext(user=user, session=session)


def refresh_session(refresh_token: str) -> tuple[SessionToken, TokenPair] | None:
    """
    Exchange a refresh token for a new pair.

    The old session is revoked (rotation), so each refresh token works once.
    Returns None when the refresh token is unknown, expired or revoked.
    """
    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        refresh_token_hash=hash_token(refresh_token),
        is_revoked=False,
    ).first()

    if not session or session.refresh_expires_at < now:
        return None

    user = session.user
    _revoke(session)
    if not user or not user.is_active:
        db.session.commit()
        return None

    return create_session(user, user_agent=session.user_agent, ip_address=session.ip_address)


def revoke_session(access_token: str) -> bool:
    """Revoke the session owning access_token. Returns False if not found."""
    session = db.session.query(SessionToken).filter_by(
        access_token_hash=hash_token(access_token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int) -> int:
    """Revoke every active session of a user; returns how many were revoked."""
    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False,
    ).all()

    for session in sessions:
        _revoke(session)

    db.session.commit()
    return len(sessions)
