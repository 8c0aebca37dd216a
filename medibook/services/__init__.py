from .availability_service import (
    add_window,
    remove_window,
    list_windows,
    is_slot_available,
    candidate_slots,
)

from .booking_service import (
    search_doctors,
    search_options,
    select_date_time,
    load_draft,
    confirm_booking,
)

from .appointment_service import (
    apply_doctor_action,
    cancel_by_patient,
    validate_transition,
    save_notes,
)

from .payment_service import list_payments, mark_paid
from .feedback_service import submit_feedback

__all__ = [
    # Availability
    "add_window",
    "remove_window",
    "list_windows",
    "is_slot_available",
    "candidate_slots",
    # Booking workflow
    "search_doctors",
    "search_options",
    "select_date_time",
    "load_draft",
    "confirm_booking",
    # Appointment lifecycle
    "apply_doctor_action",
    "cancel_by_patient",
    "validate_transition",
    "save_notes",
    # Payments and feedback
    "list_payments",
    "mark_paid",
    "submit_feedback",
]
