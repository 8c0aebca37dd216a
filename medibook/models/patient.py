from medibook.extensions import db
from .base import TimestampMixin


class Patient(db.Model, TimestampMixin):
    __tablename__ = 'patients'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True, index=True)

    age = db.Column(db.Integer)
    phone = db.Column(db.String(20))

    # Relationships
    user = db.relationship('User', backref=db.backref('patient', uselist=False), lazy='joined')

    @property
    def name(self):
        return self.user.name if self.user else None

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'email': self.user.email if self.user else None,
            'age': self.age,
            'phone': self.phone,
        }

    def __repr__(self):
        return f"<Patient {self.name} ({self.id})>"
