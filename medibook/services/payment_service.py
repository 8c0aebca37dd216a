"""
Payment Service
One pending payment per appointment; patients mark their own payments paid
"""
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError

from medibook.errors import InvalidTransitionError, NotFoundError, TransientStoreError
from medibook.extensions import db
from medibook.models import Appointment, Patient, Payment

logger = logging.getLogger(__name__)

# pending -> paid is the only transition a patient can make
PAYMENT_TRANSITIONS = {
    'pending': {'paid'},
    'paid': set(),
    'failed': set(),
}


def _patient_payments(patient: Patient):
    return (Payment.query
            .join(Appointment, Payment.appointment_id == Appointment.id)
            .filter(Appointment.patient_id == patient.id))


def list_payments(patient: Patient) -> List[Payment]:
    return _patient_payments(patient).order_by(Appointment.appointment_date.desc()).all()


def mark_paid(patient: Patient, payment_id) -> Payment:
    """
    Mark one of the patient's own payments as paid.

    A payment whose appointment belongs to someone else is reported exactly
    like a missing one.
    """
    payment = _patient_payments(patient).filter(Payment.id == payment_id).first()
    if not payment:
        raise NotFoundError("Payment not found or you don't have permission to pay it.")

    if 'paid' not in PAYMENT_TRANSITIONS.get(payment.status, set()):
        raise InvalidTransitionError(f'Payment is already {payment.status}.')

    payment.status = 'paid'
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error("Error processing payment %s: %s", payment_id, e)
        raise TransientStoreError('Error processing payment. Please try again.')

    logger.info("Payment %s marked paid by patient %s", payment.id, patient.id)
    return payment
