"""
Audit trail entries: one row per booking, status change, payment or admin edit.
"""
import json
from datetime import datetime

from medibook.extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(64), nullable=False, index=True)  # appointment, payment, doctor, feedback, patient
    entity_id = db.Column(db.String(64), nullable=True, index=True)
    action = db.Column(db.String(32), nullable=False, index=True)  # create, confirm, cancel, reschedule, pay, ...
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    details = db.Column(db.Text, nullable=True)  # JSON
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    actor = db.relationship("User", backref=db.backref("audit_entries", lazy="dynamic"))

    @property
    def data(self):
        return json.loads(self.details) if self.details else {}

    def to_dict(self):
        return {
            "id": self.id,
            "entity": f"{self.entity_type}:{self.entity_id}" if self.entity_id else self.entity_type,
            "action": self.action,
            "actor": self.actor.email if self.actor else None,
            "details": self.data,
            "at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<AuditLog {self.entity_type}:{self.entity_id} {self.action} by={self.user_id}>"
