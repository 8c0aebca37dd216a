import enum
from datetime import datetime, timedelta

from sqlalchemy.orm import validates

from medibook.extensions import db
from .base import TimestampMixin

SLOT_LENGTH = timedelta(minutes=30)


class AppointmentStatus(str, enum.Enum):
    BOOKED = 'booked'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'
    RESCHEDULED = 'rescheduled'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown appointment status: {value!r}")


def slot_end(start_time, length=SLOT_LENGTH):
    """End of a slot starting at ``start_time`` (wraps past midnight)."""
    return (datetime.combine(datetime.min, start_time) + length).time()


class Appointment(db.Model, TimestampMixin):
    __tablename__ = 'appointments'
    __table_args__ = (
        # One live appointment per doctor slot; cancelled rows free the slot.
        db.Index(
            'uq_appointments_active_slot',
            'doctor_id', 'appointment_date', 'start_time',
            unique=True,
            postgresql_where=db.text("status != 'cancelled'"),
            sqlite_where=db.text("status != 'cancelled'"),
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    # Restrict: deleting a patient or doctor never removes their appointments
    patient_id = db.Column(db.Integer, db.ForeignKey('patients.id', ondelete='RESTRICT'), nullable=False, index=True)
    doctor_id = db.Column(db.Integer, db.ForeignKey('doctors.id', ondelete='RESTRICT'), nullable=False, index=True)

    appointment_date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    location = db.Column(db.String(150))

    status = db.Column(db.String(20), nullable=False, default=AppointmentStatus.BOOKED.value, index=True)

    # Relationships
    patient = db.relationship('Patient', backref=db.backref('appointments', lazy='dynamic', passive_deletes='all'))
    doctor = db.relationship('Doctor', backref=db.backref('appointments', lazy='dynamic', passive_deletes='all'))
    payments = db.relationship('Payment', backref='appointment', lazy=True, cascade='all, delete-orphan')
    notes = db.relationship('PatientNotes', backref='appointment', uselist=False, cascade='all, delete-orphan')

    @validates('status')
    def _validate_status(self, key, value):
        return AppointmentStatus.parse(value).value

    @property
    def status_enum(self):
        return AppointmentStatus(self.status)

    def to_dict(self):
        return {
            'id': self.id,
            'patient_id': self.patient_id,
            'patient_name': self.patient.name if self.patient else None,
            'doctor_id': self.doctor_id,
            'doctor_name': self.doctor.name if self.doctor else None,
            'date': self.appointment_date.isoformat() if self.appointment_date else None,
            'start_time': self.start_time.strftime('%H:%M') if self.start_time else None,
            'end_time': self.end_time.strftime('%H:%M') if self.end_time else None,
            'location': self.location,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Appointment {self.id} doctor={self.doctor_id} {self.appointment_date} {self.start_time} ({self.status})>"
