"""
Account Service
Patient registration, credential checks and profile updates
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from medibook.errors import TransientStoreError, ValidationError
from medibook.extensions import db
from medibook.models import Doctor, Patient, User
from medibook.utils.validators import clean_text

logger = logging.getLogger(__name__)


def parse_age(value):
    if value in (None, ''):
        return None
    try:
        age = int(value)
    except (TypeError, ValueError):
        raise ValidationError('Age must be a whole number')
    if age < 0 or age > 150:
        raise ValidationError('Age must be between 0 and 150')
    return age


def parse_fee(value):
    if value in (None, ''):
        return Decimal('0')
    try:
        fee = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError('Consultation fee must be a number')
    if fee < 0:
        raise ValidationError('Consultation fee cannot be negative')
    return fee.quantize(Decimal('0.01'))


def normalize_email(email):
    email = (clean_text(email, 'email') or '').lower()
    if not email or '@' not in email:
        raise ValidationError('A valid email is required')
    return email


def email_taken(email, exclude_user_id=None) -> bool:
    query = User.query.filter_by(email=email)
    if exclude_user_id is not None:
        query = query.filter(User.id != exclude_user_id)
    return query.first() is not None


def register_patient(email, password, confirm_password=None, name=None, age=None, phone=None) -> Patient:
    """Create User(role=patient) and its Patient profile together."""
    email = normalize_email(email)
    if not password:
        raise ValidationError('Password is required')
    if confirm_password is not None and confirm_password != password:
        raise ValidationError('Passwords do not match.')
    if email_taken(email):
        raise ValidationError('Email already exists.')

    user = User(email=email, role='patient', name=clean_text(name, 'name'))
    user.set_password(password)
    patient = Patient(user=user, age=parse_age(age), phone=clean_text(phone, 'phone'))

    try:
        db.session.add(user)
        db.session.add(patient)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationError('Email already exists.')
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Registration failed for %s: %s", email, e)
        raise TransientStoreError('Registration failed. Please try again.')

    logger.info("Patient %s registered (user %s)", patient.id, user.id)
    return patient


def authenticate(email, password) -> Optional[User]:
    if not isinstance(email, str) or not isinstance(password, str) or not email or not password:
        return None
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user or not user.check_password(password):
        return None
    return user


def update_patient_profile(patient: Patient, name=None, age=None, phone=None) -> Patient:
    age = parse_age(age)
    phone = clean_text(phone, 'phone')
    name = clean_text(name, 'name')
    patient.age = age
    patient.phone = phone
    if name:
        patient.user.name = name
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error updating patient %s profile: %s", patient.id, e)
        raise TransientStoreError('Error updating profile. Please try again.')
    return patient


def update_doctor_profile(doctor: Doctor, name=None, specialty=None, consultation_fee=None, bio=None) -> Doctor:
    name = clean_text(name, 'name', required=True)
    specialty = clean_text(specialty, 'specialty')
    fee = parse_fee(consultation_fee)
    doctor.user.name = name
    doctor.specialty = specialty
    doctor.consultation_fee = fee
    doctor.bio = bio
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error updating doctor %s profile: %s", doctor.id, e)
        raise TransientStoreError('Error updating profile. Please try again.')
    return doctor
