from .user import User, ROLES
from .doctor import Doctor, DoctorAvailability, WEEKDAYS
from .patient import Patient
from .appointment import Appointment, AppointmentStatus, slot_end
from .payment import Payment, PAYMENT_STATUSES
from .patient_notes import PatientNotes
from .feedback import Feedback
from .booking_draft import BookingDraft
from .audit_log import AuditLog

__all__ = [
    "User", "ROLES", "Doctor", "DoctorAvailability", "WEEKDAYS", "Patient",
    "Appointment", "AppointmentStatus", "slot_end", "Payment", "PAYMENT_STATUSES",
    "PatientNotes", "Feedback", "BookingDraft", "AuditLog",
]
