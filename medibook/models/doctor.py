from medibook.extensions import db
from .base import TimestampMixin

WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')


class Doctor(db.Model, TimestampMixin):
    __tablename__ = 'doctors'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, unique=True, index=True)

    specialty = db.Column(db.String(100), index=True)  # free text, e.g. Cardiology
    consultation_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    bio = db.Column(db.Text)

    # Relationships
    user = db.relationship('User', backref=db.backref('doctor', uselist=False), lazy='joined')
    availabilities = db.relationship(
        'DoctorAvailability',
        backref='doctor',
        lazy=True,
        cascade='all, delete-orphan',
    )

    @property
    def name(self):
        return self.user.name if self.user and self.user.name else 'Unknown Doctor'

    def to_dict(self, include_availability=False):
        data = {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.name,
            'email': self.user.email if self.user else None,
            'specialty': self.specialty,
            'consultation_fee': float(self.consultation_fee or 0),
            'bio': self.bio,
        }
        if include_availability:
            data['availability'] = [a.to_dict() for a in self.availabilities]
        return data

    def __repr__(self):
        return f"<Doctor {self.name} - {self.specialty}>"


class DoctorAvailability(db.Model):
    """
    Recurring weekly window during which a doctor can be booked at a location.

    Windows may overlap or repeat for the same doctor/day/location; nothing
    deduplicates them.
    """
    __tablename__ = 'doctor_availabilities'

    id = db.Column(db.Integer, primary_key=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.id', ondelete='CASCADE'), nullable=False, index=True)

    day = db.Column(db.String(10), nullable=False)  # "Monday", "Tuesday", ...
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    location = db.Column(db.String(150), nullable=False)

    @property
    def day_index(self):
        try:
            return WEEKDAYS.index(self.day)
        except ValueError:
            return len(WEEKDAYS)

    def to_dict(self):
        return {
            'id': self.id,
            'doctor_id': self.doctor_id,
            'day': self.day,
            'start_time': self.start_time.strftime('%H:%M') if self.start_time else None,
            'end_time': self.end_time.strftime('%H:%M') if self.end_time else None,
            'location': self.location,
        }

    def __repr__(self):
        return f"<DoctorAvailability {self.doctor_id} {self.day} {self.start_time}-{self.end_time} @ {self.location}>"
