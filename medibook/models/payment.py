from medibook.extensions import db
from .base import TimestampMixin

PAYMENT_STATUSES = ('pending', 'paid', 'failed')


class Payment(db.Model, TimestampMixin):
    __tablename__ = 'payments'

    id = db.Column(db.Integer, primary_key=True)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False, index=True)

    # Copied from the doctor's fee when the appointment is booked
    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)  # pending, paid, failed

    def to_dict(self):
        appointment = self.appointment
        return {
            'id': self.id,
            'appointment_id': self.appointment_id,
            'amount': float(self.amount or 0),
            'status': self.status,
            'doctor_name': appointment.doctor.name if appointment and appointment.doctor else None,
            'appointment_date': appointment.appointment_date.isoformat() if appointment else None,
        }

    def __repr__(self):
        return f"<Payment {self.id} appointment={self.appointment_id} {self.amount} ({self.status})>"
