"""
In-progress booking selection carried from the date/time step to confirmation.
"""
import json
from datetime import datetime

from medibook.extensions import db


class BookingDraft(db.Model):
    __tablename__ = 'booking_drafts'

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    # Owner; a draft is never visible to another user's requests
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    payload = db.Column(db.Text, nullable=False)  # JSON
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    @property
    def data(self):
        return json.loads(self.payload)

    def is_expired(self, now=None):
        return (now or datetime.utcnow()) >= self.expires_at

    def __repr__(self):
        return f"<BookingDraft {self.token[:8]} user={self.user_id} expires={self.expires_at}>"
