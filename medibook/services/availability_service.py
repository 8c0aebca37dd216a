"""
Availability Service
Weekly availability windows per doctor and the time-slot availability check
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from medibook.errors import NotFoundError, TransientStoreError, ValidationError
from medibook.extensions import db
from medibook.models import Appointment, AppointmentStatus, Doctor, DoctorAvailability
from medibook.utils.datetime_utils import normalize_day, parse_date, parse_time, weekday_name
from medibook.utils.validators import clean_text

logger = logging.getLogger(__name__)


def same_text(left, right) -> bool:
    """Case-insensitive equality used for location and day matching."""
    if left is None or right is None:
        return False
    return left.strip().lower() == right.strip().lower()


def add_window(doctor_id: int, day, start_time, end_time, location) -> DoctorAvailability:
    """
    Persist a recurring weekly window for a doctor.

    No overlap check: several windows for the same doctor/day/location are
    allowed.
    """
    doctor = db.session.get(Doctor, doctor_id) if doctor_id else None
    if not doctor:
        raise NotFoundError('Doctor not found.')

    for field, value in (('day', day), ('start_time', start_time), ('end_time', end_time), ('location', location)):
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f'Field "{field}" is required')

    location = clean_text(location, 'location', required=True)
    start = parse_time(start_time, 'start_time')
    end = parse_time(end_time, 'end_time')
    if end <= start:
        raise ValidationError('End time must be after start time')

    window = DoctorAvailability(
        doctor_id=doctor.id,
        day=normalize_day(day),
        start_time=start,
        end_time=end,
        location=location,
    )
    try:
        db.session.add(window)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Failed to add availability for doctor %s: %s", doctor_id, e)
        raise TransientStoreError('Error adding availability. Please try again.')

    logger.info("Availability %s added for doctor %s (%s %s-%s @ %s)",
                window.id, doctor.id, window.day, start, end, window.location)
    return window


def remove_window(window_id: int, doctor_id: Optional[int] = None) -> bool:
    """
    Remove a window by id, scoped to ``doctor_id`` when given.

    Returns False when nothing matched; removing twice is harmless.
    """
    query = DoctorAvailability.query.filter_by(id=window_id)
    if doctor_id is not None:
        query = query.filter_by(doctor_id=doctor_id)
    window = query.first()
    if not window:
        return False

    try:
        db.session.delete(window)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Failed to remove availability %s: %s", window_id, e)
        raise TransientStoreError('Error removing availability. Please try again.')

    logger.info("Availability %s removed", window_id)
    return True


def list_windows(doctor_id: int, location: Optional[str] = None) -> List[DoctorAvailability]:
    """Windows for a doctor, optionally at one location, by weekday then start time."""
    windows = DoctorAvailability.query.filter_by(doctor_id=doctor_id).all()
    if location:
        windows = [w for w in windows if same_text(w.location, location)]
    return sorted(windows, key=lambda w: (w.day_index, w.start_time))


def _find_active_appointment(appointment_date, start_time, doctor_id):
    return Appointment.query.filter(
        Appointment.doctor_id == doctor_id,
        Appointment.appointment_date == appointment_date,
        Appointment.start_time == start_time,
        Appointment.status != AppointmentStatus.CANCELLED.value,
    ).first()


def is_slot_available(appointment_date, start_time, doctor_id, fail_open: Optional[bool] = None) -> bool:
    """
    True unless a non-cancelled appointment for the doctor already holds this
    exact date and start time.

    Only the calendar date counts and the start time must match exactly. The
    doctor's availability windows are not consulted.

    On a store error the answer follows the fail-open policy
    (``AVAILABILITY_FAIL_OPEN``): available when enabled, otherwise
    TransientStoreError.
    """
    appointment_date = parse_date(appointment_date)
    start_time = parse_time(start_time)
    if fail_open is None:
        fail_open = current_app.config.get('AVAILABILITY_FAIL_OPEN', True)

    try:
        existing = _find_active_appointment(appointment_date, start_time, doctor_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        if fail_open:
            logger.warning("Availability check failed for doctor %s on %s %s, treating slot as available: %s",
                           doctor_id, appointment_date, start_time, e)
            return True
        logger.error("Availability check failed for doctor %s on %s %s: %s",
                     doctor_id, appointment_date, start_time, e)
        raise TransientStoreError('Could not check availability. Please try again.')

    return existing is None


def candidate_slots(doctor: Doctor, on_date, location: Optional[str] = None) -> List[dict]:
    """
    Start times offered for ``on_date``: every slot inside the doctor's windows
    for that weekday (and location, if given), each marked available or taken.
    """
    on_date = parse_date(on_date)
    slot_minutes = current_app.config.get('SLOT_MINUTES', 30)
    step = timedelta(minutes=slot_minutes)
    day = weekday_name(on_date)

    seen = set()
    slots = []
    for window in list_windows(doctor.id, location):
        if window.day != day:
            continue
        cursor = datetime.combine(on_date, window.start_time)
        last_start = datetime.combine(on_date, window.end_time) - step
        while cursor <= last_start:
            key = (cursor.time(), window.location)
            if key not in seen:
                seen.add(key)
                slots.append({
                    'time': cursor.strftime('%H:%M'),
                    'location': window.location,
                    'available': is_slot_available(on_date, cursor.time(), doctor.id),
                })
            cursor += step

    return sorted(slots, key=lambda s: (s['time'], s['location']))
