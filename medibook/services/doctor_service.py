"""
Doctor Service
Admin-side management of doctor accounts
"""
import logging
from typing import List

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from medibook.errors import NotFoundError, TransientStoreError, ValidationError
from medibook.extensions import db
from medibook.models import Appointment, Doctor, Feedback, Patient, User
from medibook.services.account_service import email_taken, normalize_email, parse_fee
from medibook.utils.validators import clean_text, parse_id

logger = logging.getLogger(__name__)

SPECIALTIES = [
    "Cardiology",
    "Pediatrics",
    "Dermatology",
    "Neurology",
    "Orthopedics",
    "Gynecology",
    "Psychiatry",
    "Dentistry",
    "Ophthalmology",
    "Emergency Medicine",
]


def list_doctors() -> List[Doctor]:
    return Doctor.query.join(User, Doctor.user_id == User.id).order_by(User.name).all()


def list_patients() -> List[Patient]:
    return Patient.query.join(User, Patient.user_id == User.id).order_by(User.name).all()


def get_doctor_or_404(doctor_id) -> Doctor:
    doctor_id = parse_id(doctor_id, 'doctor id')
    doctor = db.session.get(Doctor, doctor_id) if doctor_id else None
    if not doctor:
        raise NotFoundError('Doctor not found.')
    return doctor


def create_doctor(name, email, specialty=None, consultation_fee=None, bio=None, password=None) -> Doctor:
    """Provision User(role=doctor) and its Doctor profile together."""
    name = clean_text(name, 'name', required=True)
    email = normalize_email(email)
    if email_taken(email):
        raise ValidationError('Email already exists.')

    user = User(email=email, role='doctor', name=name)
    user.set_password(password or current_app.config['DEFAULT_DOCTOR_PASSWORD'])
    doctor = Doctor(
        user=user,
        specialty=clean_text(specialty, 'specialty'),
        consultation_fee=parse_fee(consultation_fee),
        bio=bio,
    )
    try:
        db.session.add(user)
        db.session.add(doctor)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError('Email already exists.')
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error adding doctor %s: %s", email, e)
        raise TransientStoreError('Error adding doctor. Please try again.')

    logger.info("Doctor %s created (user %s)", doctor.id, user.id)
    return doctor


def update_doctor(doctor_id, name, email, specialty=None, consultation_fee=None, bio=None) -> Doctor:
    doctor = get_doctor_or_404(doctor_id)
    name = clean_text(name, 'name', required=True)
    email = normalize_email(email)
    if email_taken(email, exclude_user_id=doctor.user_id):
        raise ValidationError('Email already exists.')

    doctor.specialty = clean_text(specialty, 'specialty')
    doctor.consultation_fee = parse_fee(consultation_fee)
    doctor.bio = bio
    doctor.user.name = name
    doctor.user.email = email
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error updating doctor %s: %s", doctor_id, e)
        raise TransientStoreError('Error updating doctor. Please try again.')

    logger.info("Doctor %s updated", doctor.id)
    return doctor


def delete_doctor(doctor_id) -> dict:
    """
    Remove availabilities, the doctor, then the linked user, in one commit.

    Appointments and feedback restrict the delete: a doctor who still has
    either cannot be removed.
    """
    doctor = get_doctor_or_404(doctor_id)
    if Appointment.query.filter_by(doctor_id=doctor.id).count():
        raise ValidationError('Doctor has appointments and cannot be deleted.')
    if Feedback.query.filter_by(doctor_id=doctor.id).count():
        raise ValidationError('Doctor has feedback records and cannot be deleted.')

    info = {'id': doctor.id, 'name': doctor.name, 'email': doctor.user.email if doctor.user else None}
    user = doctor.user
    try:
        for window in list(doctor.availabilities):
            db.session.delete(window)
        db.session.delete(doctor)
        if user is not None:
            db.session.delete(user)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error deleting doctor %s: %s", doctor_id, e)
        raise TransientStoreError('Error deleting doctor. Please try again.')

    logger.info("Doctor %s deleted", info['id'])
    return info
