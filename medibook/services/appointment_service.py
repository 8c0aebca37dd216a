"""
Appointment Service
Status lifecycle, appointment listings and consultation notes
"""
import logging
from datetime import date, timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from medibook.errors import (
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    TransientStoreError,
    ValidationError,
)
from medibook.extensions import db
from medibook.models import Appointment, AppointmentStatus, Doctor, Patient, PatientNotes, slot_end
from medibook.services.availability_service import is_slot_available
from medibook.utils.datetime_utils import parse_date, parse_time

logger = logging.getLogger(__name__)

S = AppointmentStatus

# Allowed edges. A rescheduled appointment behaves like a booked one;
# completed and cancelled are terminal.
ALLOWED_TRANSITIONS = {
    S.BOOKED: {S.CONFIRMED, S.CANCELLED, S.RESCHEDULED},
    S.CONFIRMED: {S.COMPLETED, S.CANCELLED, S.RESCHEDULED},
    S.RESCHEDULED: {S.CONFIRMED, S.CANCELLED, S.RESCHEDULED},
    S.COMPLETED: set(),
    S.CANCELLED: set(),
}

DOCTOR_ACTIONS = {
    'confirm': S.CONFIRMED,
    'cancel': S.CANCELLED,
    'complete': S.COMPLETED,
    'reschedule': S.RESCHEDULED,
}


def can_transition(current, target) -> bool:
    return AppointmentStatus.parse(target) in ALLOWED_TRANSITIONS.get(AppointmentStatus.parse(current), set())


def validate_transition(current, target) -> None:
    """Raise InvalidTransitionError unless ``current -> target`` is an allowed edge."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot change appointment from {AppointmentStatus.parse(current).value} "
            f"to {AppointmentStatus.parse(target).value}."
        )


def _commit(action: str, appointment: Appointment):
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.info("Appointment %s %s rejected by slot constraint: %s", appointment.id, action, e)
        raise SlotUnavailableError()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error updating appointment %s (%s): %s", appointment.id, action, e, exc_info=True)
        raise TransientStoreError('Error updating appointment. Please try again.')


def get_doctor_appointment(doctor: Doctor, appointment_id) -> Appointment:
    appointment = Appointment.query.filter_by(id=appointment_id, doctor_id=doctor.id).first()
    if not appointment:
        raise NotFoundError('Appointment not found.')
    return appointment


def get_patient_appointment(patient: Patient, appointment_id) -> Appointment:
    appointment = Appointment.query.filter_by(id=appointment_id, patient_id=patient.id).first()
    if not appointment:
        raise NotFoundError("Appointment not found or you don't have permission to cancel it.")
    return appointment


def reschedule(appointment: Appointment, new_date, new_time) -> Appointment:
    """Move the appointment in place to a new date/time; same row, same id."""
    new_date = parse_date(new_date, 'new_date')
    new_time = parse_time(new_time, 'new_time')
    if not new_date or not new_time:
        raise ValidationError('New date and time are required for rescheduling.')

    validate_transition(appointment.status, S.RESCHEDULED)

    moving = (new_date, new_time) != (appointment.appointment_date, appointment.start_time)
    if moving and not is_slot_available(new_date, new_time, appointment.doctor_id):
        raise SlotUnavailableError()

    slot_minutes = current_app.config.get('SLOT_MINUTES', 30)
    appointment.appointment_date = new_date
    appointment.start_time = new_time
    appointment.end_time = slot_end(new_time, timedelta(minutes=slot_minutes))
    appointment.status = S.RESCHEDULED
    return appointment


def apply_doctor_action(doctor: Doctor, appointment_id, action: str,
                        new_date=None, new_time=None) -> Appointment:
    """Doctor-initiated confirm / cancel / complete / reschedule."""
    if action is not None and not isinstance(action, str):
        raise ValidationError('Invalid action.')
    action_key = (action or '').strip().lower()
    if action_key not in DOCTOR_ACTIONS:
        raise ValidationError('Invalid action.')

    appointment = get_doctor_appointment(doctor, appointment_id)
    previous = appointment.status

    if action_key == 'reschedule':
        reschedule(appointment, new_date, new_time)
    else:
        target = DOCTOR_ACTIONS[action_key]
        validate_transition(appointment.status, target)
        appointment.status = target

    _commit(action_key, appointment)
    logger.info("Doctor %s: appointment %s %s -> %s", doctor.id, appointment.id, previous, appointment.status)
    return appointment


def cancel_by_patient(patient: Patient, appointment_id) -> Appointment:
    """Patients may only cancel, and only their own appointments."""
    appointment = get_patient_appointment(patient, appointment_id)
    previous = appointment.status
    validate_transition(appointment.status, S.CANCELLED)
    appointment.status = S.CANCELLED
    _commit('cancel', appointment)
    logger.info("Patient %s cancelled appointment %s (was %s)", patient.id, appointment.id, previous)
    return appointment


def _apply_filter(query, filter_name: Optional[str], today: date):
    active = Appointment.status != S.CANCELLED.value
    key = (filter_name or '').strip().lower()
    if key == 'upcoming':
        query = query.filter(Appointment.appointment_date >= today, active)
    elif key == 'today':
        query = query.filter(Appointment.appointment_date == today, active)
    elif key == 'past':
        query = query.filter(db.or_(Appointment.appointment_date < today,
                                    Appointment.status == S.COMPLETED.value))
    elif key == 'cancelled':
        query = query.filter(Appointment.status == S.CANCELLED.value)
    return query


def list_patient_appointments(patient: Patient, filter_name: Optional[str] = None) -> List[Appointment]:
    # 'today' is a doctor-side filter only
    if (filter_name or '').strip().lower() == 'today':
        filter_name = None
    query = _apply_filter(Appointment.query.filter_by(patient_id=patient.id), filter_name, date.today())
    return query.order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc()).all()


def list_doctor_appointments(doctor: Doctor, filter_name: Optional[str] = None) -> List[Appointment]:
    query = _apply_filter(Appointment.query.filter_by(doctor_id=doctor.id), filter_name, date.today())
    return query.order_by(Appointment.appointment_date.desc(), Appointment.start_time.desc()).all()


def get_notes(doctor: Doctor, appointment_id) -> dict:
    appointment = get_doctor_appointment(doctor, appointment_id)
    notes = appointment.notes
    return {
        'appointment': appointment.to_dict(),
        'notes': notes.notes if notes else None,
        'prescription': notes.prescription if notes else None,
    }


def save_notes(doctor: Doctor, appointment_id, notes: Optional[str], prescription: Optional[str] = None) -> PatientNotes:
    """First save creates the notes row; later saves update it in place."""
    if not notes or not str(notes).strip():
        raise ValidationError('Please provide consultation notes.')

    appointment = get_doctor_appointment(doctor, appointment_id)
    record = PatientNotes.query.filter_by(appointment_id=appointment.id).first()
    if record:
        record.notes = notes
        record.prescription = prescription
    else:
        record = PatientNotes(appointment_id=appointment.id, notes=notes, prescription=prescription)
        db.session.add(record)

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error saving notes for appointment %s: %s", appointment.id, e)
        raise TransientStoreError('Error saving patient notes. Please try again.')

    logger.info("Doctor %s saved notes for appointment %s", doctor.id, appointment.id)
    return record


def list_medical_records(patient: Patient) -> List[PatientNotes]:
    return (PatientNotes.query
            .join(Appointment, PatientNotes.appointment_id == Appointment.id)
            .filter(Appointment.patient_id == patient.id)
            .order_by(Appointment.appointment_date.desc())
            .all())
