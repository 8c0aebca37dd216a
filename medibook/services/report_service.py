"""
Report Service
Dashboard statistics for each role and the admin report
"""
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func

from medibook.extensions import db
from medibook.models import Appointment, AppointmentStatus, Doctor, Patient, Payment, User

logger = logging.getLogger(__name__)

CLOSED_STATUSES = (AppointmentStatus.CANCELLED.value, AppointmentStatus.COMPLETED.value)


def _money(value) -> float:
    return float(value or Decimal('0'))


def patient_dashboard(patient: Patient) -> dict:
    today = date.today()
    base = Appointment.query.filter_by(patient_id=patient.id)
    pending_payments = (Payment.query
                        .join(Appointment, Payment.appointment_id == Appointment.id)
                        .filter(Appointment.patient_id == patient.id, Payment.status == 'pending')
                        .count())
    recent = base.order_by(Appointment.appointment_date.desc()).limit(5).all()
    return {
        'patient': patient.to_dict(),
        'total_appointments': base.count(),
        'upcoming_appointments': base.filter(Appointment.appointment_date >= today,
                                             Appointment.status.notin_(CLOSED_STATUSES)).count(),
        'pending_payments': pending_payments,
        'recent_appointments': [a.to_dict() for a in recent],
    }


def doctor_dashboard(doctor: Doctor) -> dict:
    today = date.today()
    base = Appointment.query.filter_by(doctor_id=doctor.id)
    open_ = Appointment.status.notin_(CLOSED_STATUSES)
    recent = (base.order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc())
              .limit(5).all())
    return {
        'doctor': doctor.to_dict(),
        'total_appointments': base.count(),
        'upcoming_appointments': base.filter(Appointment.appointment_date >= today, open_).count(),
        'today_appointments': base.filter(Appointment.appointment_date == today, open_).count(),
        'recent_appointments': [a.to_dict() for a in recent],
    }


def total_revenue() -> float:
    total = db.session.query(func.sum(Payment.amount)).filter(Payment.status == 'paid').scalar()
    return _money(total)


def admin_dashboard() -> dict:
    recent = Appointment.query.order_by(Appointment.appointment_date.desc()).limit(10).all()
    return {
        'total_doctors': Doctor.query.count(),
        'total_patients': Patient.query.count(),
        'total_appointments': Appointment.query.count(),
        'total_revenue': total_revenue(),
        'recent_appointments': [a.to_dict() for a in recent],
    }


def admin_report() -> dict:
    """Totals, counts per status and paid revenue per doctor."""
    status_rows = (db.session.query(Appointment.status, func.count(Appointment.id))
                   .group_by(Appointment.status).all())
    appointment_stats = {status: count for status, count in status_rows}

    # Grouped by doctor id: two doctors may share a display name
    revenue_rows = (db.session.query(Doctor.id, User.name, func.sum(Payment.amount))
                    .select_from(Payment)
                    .join(Appointment, Payment.appointment_id == Appointment.id)
                    .join(Doctor, Appointment.doctor_id == Doctor.id)
                    .join(User, Doctor.user_id == User.id)
                    .filter(Payment.status == 'paid')
                    .group_by(Doctor.id, User.name)
                    .all())

    return {
        'total_appointments': Appointment.query.count(),
        'completed_appointments': appointment_stats.get(AppointmentStatus.COMPLETED.value, 0),
        'cancelled_appointments': appointment_stats.get(AppointmentStatus.CANCELLED.value, 0),
        'total_revenue': total_revenue(),
        'pending_payments': Payment.query.filter_by(status='pending').count(),
        'appointment_stats': appointment_stats,
        'revenue_by_doctor': {
            doctor_id: {'doctor_name': name or 'Unknown Doctor', 'revenue': _money(amount)}
            for doctor_id, name, amount in revenue_rows
        },
    }
