from datetime import datetime
from medibook.extensions import db


class PatientNotes(db.Model):
    """Consultation notes written by the doctor; at most one per appointment."""
    __tablename__ = 'patient_notes'

    id = db.Column(db.Integer, primary_key=True)
    appointment_id = db.Column(
        db.Integer, db.ForeignKey('appointments.id', ondelete='CASCADE'), nullable=False, unique=True, index=True
    )
    notes = db.Column(db.Text)
    prescription = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        appointment = self.appointment
        return {
            'id': self.id,
            'appointment_id': self.appointment_id,
            'notes': self.notes,
            'prescription': self.prescription,
            'doctor_name': appointment.doctor.name if appointment and appointment.doctor else None,
            'appointment_date': appointment.appointment_date.isoformat() if appointment else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
