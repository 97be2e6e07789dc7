from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class SecurityEvent(db.Model):
    """
    Append-only log of security-relevant events (denied permission checks,
    failed logins, logouts).
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_user_occurred", "user_id", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)

    event_type = db.Column(db.String(64), nullable=False, index=True)
    resource = db.Column(db.String(255), nullable=True)
    action = db.Column(db.String(64), nullable=True)
    success = db.Column(db.Boolean, nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "event_type": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "occurred_at": to_utc_z(self.occurred_at),
        }
