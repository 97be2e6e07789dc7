# backend/stockroom/routes/system.py
"""
System health endpoint.

Checks the database and the session table so a deployment probe can tell a
dead database from a live one.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, SessionToken, User
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Count a few core tables and time it."""
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        user_count = db.session.query(User).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "users": user_count,
            }
        }
    except SQLAlchemyError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        now = utcnow()
        active_sessions = db.session.query(SessionToken).filter(
            SessionToken.is_revoked.is_(False),
            SessionToken.refresh_expires_at >= now,
        ).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"active_sessions": active_sessions},
        }
    except SQLAlchemyError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error"
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: all checks healthy
    - 503: at least one check unhealthy
    """
    start_time = time.time()

    database_health = check_database_health()
    session_health = check_session_service_health()

    unhealthy = any(c["status"] == "unhealthy" for c in (database_health, session_health))
    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": "unhealthy" if unhealthy else "healthy",
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "session_service": session_health,
        }
    }
    return response, 503 if unhealthy else 200
