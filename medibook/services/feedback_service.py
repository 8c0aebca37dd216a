"""
Feedback Service
Create-only patient feedback, optionally about one doctor
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from medibook.errors import TransientStoreError, ValidationError
from medibook.extensions import db
from medibook.models import Doctor, Feedback, Patient, User
from medibook.utils.validators import clean_text

logger = logging.getLogger(__name__)


def doctor_choices() -> List[dict]:
    """Doctors offered on the feedback form, by name."""
    doctors = Doctor.query.join(User, Doctor.user_id == User.id).order_by(User.name).all()
    return [{'id': d.id, 'label': f"Dr. {d.name} - {d.specialty}"} for d in doctors]


def submit_feedback(patient: Patient, rating, comment: Optional[str] = None, doctor_id=None) -> Feedback:
    try:
        rating = int(rating)
    except (TypeError, ValueError):
        raise ValidationError('Rating is required and must be a number between 1 and 5')
    if rating < 1 or rating > 5:
        raise ValidationError('Rating must be between 1 and 5')

    if doctor_id in ('', None):
        doctor_id = None
    else:
        try:
            doctor_id = int(doctor_id)
        except (TypeError, ValueError):
            raise ValidationError('Selected doctor does not exist')
        if not db.session.get(Doctor, doctor_id):
            raise ValidationError('Selected doctor does not exist')

    feedback = Feedback(
        patient_id=patient.id,
        doctor_id=doctor_id,
        rating=rating,
        comment=clean_text(comment, 'comment'),
    )
    try:
        db.session.add(feedback)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error saving feedback from patient %s: %s", patient.id, e)
        raise TransientStoreError('Error submitting feedback. Please try again.')

    logger.info("Feedback %s submitted by patient %s (doctor=%s, rating=%s)",
                feedback.id, patient.id, doctor_id, rating)
    return feedback
