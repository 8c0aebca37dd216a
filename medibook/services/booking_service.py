"""
Booking Service
Multi-step booking workflow: search -> select date/time/location -> confirm.

The selection made in the date/time step is stored as a server-side
BookingDraft owned by the patient's user account and addressed by an opaque
token. Confirmation consumes the draft in the same transaction that creates
the Appointment and its Payment.
"""
import json
import logging
import secrets
from datetime import datetime, timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from medibook.errors import (
    DraftMissingError,
    NotFoundError,
    SlotUnavailableError,
    TransientStoreError,
    ValidationError,
)
from medibook.extensions import db
from medibook.models import (
    Appointment,
    AppointmentStatus,
    BookingDraft,
    Doctor,
    DoctorAvailability,
    Patient,
    Payment,
    WEEKDAYS,
    slot_end,
)
from medibook.services.availability_service import (
    candidate_slots,
    is_slot_available,
    list_windows,
    same_text,
)
from medibook.utils.datetime_utils import parse_date, parse_time
from medibook.utils.validators import clean_text, parse_id

logger = logging.getLogger(__name__)

ALL_SPECIALTIES = 'All Specialties'
ALL_LOCATIONS = 'All Locations'
ANY_DAY = 'Any Day'


def _is_filter(value, sentinel) -> bool:
    return bool(value) and value.strip() != '' and value != sentinel


def search_doctors(specialty: Optional[str] = None,
                   location: Optional[str] = None,
                   day: Optional[str] = None) -> List[Doctor]:
    """
    Doctors matching every given filter.

    specialty: exact, case-insensitive match on the doctor's specialty
    location: any availability window at that location (case-insensitive)
    day: any availability window on that weekday (case-insensitive, trimmed)

    Empty values and the "All Specialties" / "All Locations" / "Any Day"
    sentinels skip their filter.
    """
    doctors = Doctor.query.all()

    if _is_filter(specialty, ALL_SPECIALTIES):
        doctors = [d for d in doctors if same_text(d.specialty, specialty)]

    if _is_filter(location, ALL_LOCATIONS):
        doctors = [d for d in doctors
                   if any(same_text(w.location, location) for w in d.availabilities)]

    if _is_filter(day, ANY_DAY):
        doctors = [d for d in doctors
                   if any(same_text(w.day, day) for w in d.availabilities)]

    return doctors


def search_options() -> dict:
    """Choices offered by the search form."""
    specialties = [row[0] for row in db.session.query(Doctor.specialty)
                   .filter(Doctor.specialty.isnot(None)).distinct().order_by(Doctor.specialty)]
    locations = [row[0] for row in db.session.query(DoctorAvailability.location)
                 .filter(DoctorAvailability.location.isnot(None)).distinct().order_by(DoctorAvailability.location)]
    return {
        'specialties': specialties,
        'locations': locations,
        'days': list(WEEKDAYS),
    }


def get_doctor(doctor_id) -> Doctor:
    doctor_id = parse_id(doctor_id, 'doctor id')
    doctor = db.session.get(Doctor, doctor_id) if doctor_id else None
    if not doctor:
        raise NotFoundError('Doctor not found.', payload={'next': 'search'})
    return doctor


def _purge_expired_drafts(now):
    BookingDraft.query.filter(BookingDraft.expires_at <= now).delete(synchronize_session=False)


def create_draft(user_id: int, payload: dict) -> BookingDraft:
    """Store the in-progress selection for ``user_id`` with a fresh token."""
    now = datetime.utcnow()
    ttl = current_app.config.get('BOOKING_DRAFT_TTL_SECONDS', 900)
    draft = BookingDraft(
        token=secrets.token_urlsafe(32),
        user_id=user_id,
        payload=json.dumps(payload),
        created_at=now,
        expires_at=now + timedelta(seconds=ttl),
    )
    try:
        _purge_expired_drafts(now)
        db.session.add(draft)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Failed to store booking draft for user %s: %s", user_id, e)
        raise TransientStoreError('Error saving booking data. Please try again.')
    return draft


def _get_draft(user_id: int, token: Optional[str]) -> BookingDraft:
    if not token:
        raise DraftMissingError()
    draft = BookingDraft.query.filter_by(token=token, user_id=user_id).first()
    if not draft:
        raise DraftMissingError()
    if draft.is_expired():
        db.session.delete(draft)
        db.session.commit()
        raise DraftMissingError()
    return draft


def load_draft(user_id: int, token: Optional[str]) -> dict:
    """Draft contents for the confirmation view; the draft stays in place."""
    draft = _get_draft(user_id, token)
    data = draft.data
    data['draft_token'] = draft.token
    data['expires_at'] = draft.expires_at.isoformat()
    return data


def select_date_time(patient: Patient, doctor_id, location: Optional[str] = None,
                     appointment_date=None, start_time=None) -> dict:
    """
    Date/time/location step.

    - date without time: returns the time choices and stays on this step
    - doctor, date, time and location present and the slot is free: stores a
      draft and moves on to confirmation
    - slot taken: SlotUnavailableError, the caller stays on this step
    """
    location = clean_text(location, 'location')
    doctor = get_doctor(doctor_id)
    windows = list_windows(doctor.id, location)
    chosen_date = parse_date(appointment_date, 'appointment_date')
    chosen_time = parse_time(start_time, 'start_time')

    result = {
        'doctor': doctor.to_dict(),
        'selected_location': location,
        'availability': [w.to_dict() for w in windows],
    }

    if chosen_date and not chosen_time:
        result['step'] = 'select_time'
        result['appointment_date'] = chosen_date.isoformat()
        result['slots'] = candidate_slots(doctor, chosen_date, location)
        return result

    if not chosen_date or not chosen_time or not location:
        raise ValidationError('Please complete all required fields.')

    if not is_slot_available(chosen_date, chosen_time, doctor.id):
        logger.info("Slot %s %s for doctor %s is taken", chosen_date, chosen_time, doctor.id)
        raise SlotUnavailableError()

    draft = create_draft(patient.user_id, {
        'doctor_id': doctor.id,
        'doctor_name': doctor.name,
        'specialty': doctor.specialty,
        'consultation_fee': float(doctor.consultation_fee or 0),
        'appointment_date': chosen_date.isoformat(),
        'start_time': chosen_time.strftime('%H:%M'),
        'location': location,
    })
    logger.info("Booking draft stored for patient %s (doctor %s, %s %s)",
                patient.id, doctor.id, chosen_date, chosen_time)

    result['step'] = 'confirm'
    result['draft_token'] = draft.token
    result['expires_at'] = draft.expires_at.isoformat()
    return result


def confirmation_message(doctor_name: str, appointment_date, start_time) -> str:
    return (f"Appointment booked successfully with Dr. {doctor_name} "
            f"on {appointment_date:%B %d, %Y} at {start_time:%H:%M}")


def confirm_booking(patient: Patient, token: Optional[str]):
    """
    Turn the patient's draft into one Appointment (booked) and one Payment
    (pending, amount = the doctor's current fee), or neither.

    Returns (appointment, payment, message).
    """
    draft = _get_draft(patient.user_id, token)
    data = draft.data

    doctor = db.session.get(Doctor, data.get('doctor_id'))
    if not doctor:
        raise NotFoundError('Doctor not found.', payload={'next': 'search'})
    appointment_date = parse_date(data.get('appointment_date'))
    start_time = parse_time(data.get('start_time'))
    if not appointment_date or not start_time:
        raise DraftMissingError('Invalid booking data. Please start over.')

    # The slot may have been taken since the draft was stored
    if not is_slot_available(appointment_date, start_time, doctor.id):
        raise SlotUnavailableError()

    slot_minutes = current_app.config.get('SLOT_MINUTES', 30)
    try:
        appointment = Appointment(
            patient_id=patient.id,
            doctor_id=doctor.id,
            appointment_date=appointment_date,
            start_time=start_time,
            end_time=slot_end(start_time, timedelta(minutes=slot_minutes)),
            location=data.get('location'),
            status=AppointmentStatus.BOOKED,
        )
        db.session.add(appointment)
        db.session.flush()  # Get appointment.id

        payment = Payment(
            appointment_id=appointment.id,
            amount=doctor.consultation_fee or 0,
            status='pending',
        )
        db.session.add(payment)
        db.session.delete(draft)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.info("Slot %s %s for doctor %s taken concurrently: %s", appointment_date, start_time, doctor.id, e)
        raise SlotUnavailableError()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error booking appointment for patient %s: %s", patient.id, e, exc_info=True)
        raise TransientStoreError('Error booking appointment. Please try again.')

    logger.info("Appointment %s booked: patient %s, doctor %s, %s %s",
                appointment.id, patient.id, doctor.id, appointment_date, start_time)
    return appointment, payment, confirmation_message(doctor.name, appointment_date, start_time)
