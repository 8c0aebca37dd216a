from datetime import time, timedelta

import pytest

from medibook.errors import InvalidTransitionError, NotFoundError, SlotUnavailableError, ValidationError
from medibook.extensions import db
from medibook.models import Appointment, AppointmentStatus, Payment, PatientNotes, slot_end
from medibook.services.appointment_service import (
    apply_doctor_action,
    can_transition,
    cancel_by_patient,
    get_notes,
    list_doctor_appointments,
    list_medical_records,
    list_patient_appointments,
    save_notes,
    validate_transition,
)

S = AppointmentStatus


@pytest.fixture
def appointment(doctor, patient, monday):
    appointment = Appointment(
        patient_id=patient.id, doctor_id=doctor.id, appointment_date=monday,
        start_time=time(9, 0), end_time=time(9, 30), location='Main Hospital', status=S.BOOKED,
    )
    db.session.add(appointment)
    db.session.flush()
    db.session.add(Payment(appointment_id=appointment.id, amount=doctor.consultation_fee, status='pending'))
    db.session.commit()
    return appointment


@pytest.mark.parametrize('current, target', [
    (S.BOOKED, S.CONFIRMED),
    (S.BOOKED, S.CANCELLED),
    (S.BOOKED, S.RESCHEDULED),
    (S.CONFIRMED, S.COMPLETED),
    (S.CONFIRMED, S.CANCELLED),
    (S.RESCHEDULED, S.CONFIRMED),
    (S.RESCHEDULED, S.RESCHEDULED),
])
def test_allowed_transitions(current, target):
    assert can_transition(current, target)
    validate_transition(current.value, target.value)


@pytest.mark.parametrize('current, target', [
    (S.BOOKED, S.COMPLETED),
    (S.COMPLETED, S.CANCELLED),
    (S.COMPLETED, S.RESCHEDULED),
    (S.CANCELLED, S.CONFIRMED),
    (S.CANCELLED, S.BOOKED),
    (S.CONFIRMED, S.BOOKED),
])
def test_rejected_transitions(current, target):
    assert not can_transition(current, target)
    with pytest.raises(InvalidTransitionError):
        validate_transition(current, target)


def test_doctor_confirms_then_completes(doctor, appointment):
    apply_doctor_action(doctor, appointment.id, 'Confirm')
    assert appointment.status == 'confirmed'

    apply_doctor_action(doctor, appointment.id, 'complete')
    assert appointment.status == 'completed'

    with pytest.raises(InvalidTransitionError):
        apply_doctor_action(doctor, appointment.id, 'cancel')
    db.session.refresh(appointment)
    assert appointment.status == 'completed'


def test_unknown_action(doctor, appointment):
    with pytest.raises(ValidationError):
        apply_doctor_action(doctor, appointment.id, 'archive')


def test_doctor_only_acts_on_own_appointments(other_doctor, appointment):
    with pytest.raises(NotFoundError):
        apply_doctor_action(other_doctor, appointment.id, 'confirm')
    assert appointment.status == 'booked'


def test_reschedule_moves_the_same_row(doctor, appointment, monday):
    original_id = appointment.id
    new_date = monday + timedelta(days=7)

    apply_doctor_action(doctor, appointment.id, 'reschedule', new_date=new_date.isoformat(), new_time='14:15')

    moved = db.session.get(Appointment, original_id)
    assert moved.appointment_date == new_date
    assert moved.start_time == time(14, 15)
    assert moved.end_time == time(14, 45)
    assert moved.status == 'rescheduled'
    assert Appointment.query.count() == 1


def test_reschedule_requires_date_and_time(doctor, appointment, monday):
    with pytest.raises(ValidationError):
        apply_doctor_action(doctor, appointment.id, 'reschedule', new_date=None, new_time='10:00')
    with pytest.raises(ValidationError):
        apply_doctor_action(doctor, appointment.id, 'reschedule', new_date=monday.isoformat(), new_time=None)

    db.session.refresh(appointment)
    assert appointment.status == 'booked'
    assert appointment.start_time == time(9, 0)


def test_reschedule_onto_a_taken_slot(doctor, other_patient, appointment, monday):
    db.session.add(Appointment(
        patient_id=other_patient.id, doctor_id=doctor.id, appointment_date=monday,
        start_time=time(11, 0), end_time=slot_end(time(11, 0)), location='Main Hospital', status=S.BOOKED,
    ))
    db.session.commit()

    with pytest.raises(SlotUnavailableError):
        apply_doctor_action(doctor, appointment.id, 'reschedule', new_date=monday.isoformat(), new_time='11:00')


def test_reschedule_in_place_to_the_same_slot(doctor, appointment, monday):
    apply_doctor_action(doctor, appointment.id, 'reschedule', new_date=monday.isoformat(), new_time='09:00')

    assert appointment.status == 'rescheduled'


def test_terminal_appointment_cannot_be_rescheduled(doctor, appointment, monday):
    appointment.status = S.CANCELLED
    db.session.commit()

    with pytest.raises(InvalidTransitionError):
        apply_doctor_action(doctor, appointment.id, 'reschedule', new_date=monday.isoformat(), new_time='10:00')


def test_patient_cancel_keeps_payment_and_notes(doctor, patient, appointment):
    save_notes(doctor, appointment.id, 'Mild hypertension', 'Lisinopril 10mg')

    cancel_by_patient(patient, appointment.id)

    assert appointment.status == 'cancelled'
    assert Payment.query.filter_by(appointment_id=appointment.id).count() == 1
    assert PatientNotes.query.filter_by(appointment_id=appointment.id).count() == 1


def test_patient_cannot_cancel_someone_elses_appointment(other_patient, appointment):
    with pytest.raises(NotFoundError):
        cancel_by_patient(other_patient, appointment.id)
    assert appointment.status == 'booked'


def test_cancelling_twice_is_rejected(patient, appointment):
    cancel_by_patient(patient, appointment.id)

    with pytest.raises(InvalidTransitionError):
        cancel_by_patient(patient, appointment.id)


def test_notes_created_once_then_updated(doctor, patient, appointment):
    with pytest.raises(ValidationError):
        save_notes(doctor, appointment.id, '   ')

    first = save_notes(doctor, appointment.id, 'Initial visit')
    second = save_notes(doctor, appointment.id, 'Follow-up in two weeks', 'Rest')

    assert first.id == second.id
    assert PatientNotes.query.count() == 1
    assert get_notes(doctor, appointment.id)['prescription'] == 'Rest'
    assert [r.notes for r in list_medical_records(patient)] == ['Follow-up in two weeks']


def test_listing_filters(doctor, patient, appointment, monday):
    past = Appointment(
        patient_id=patient.id, doctor_id=doctor.id, appointment_date=monday - timedelta(days=14),
        start_time=time(9, 0), end_time=time(9, 30), location='Main Hospital', status=S.COMPLETED,
    )
    db.session.add(past)
    db.session.commit()

    assert list_patient_appointments(patient, 'upcoming') == [appointment]
    assert list_patient_appointments(patient, 'past') == [past]
    assert list_patient_appointments(patient, 'cancelled') == []
    assert list_doctor_appointments(doctor) == [appointment, past]

    cancel_by_patient(patient, appointment.id)
    assert list_doctor_appointments(doctor, 'cancelled') == [appointment]
    assert list_doctor_appointments(doctor, 'upcoming') == []


def test_status_update_over_http(client, doctor_headers, patient_headers, appointment):
    resp = client.put(f'/api/doctor/appointments/{appointment.id}/status', headers=doctor_headers,
                      json={'action': 'confirm'})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['data']['status'] == 'confirmed'
    assert body['message'] == 'Appointment confirmed successfully!'

    resp = client.put(f'/api/doctor/appointments/{appointment.id}/status', headers=doctor_headers,
                      json={'action': 'complete'})
    assert resp.status_code == 200

    resp = client.post(f'/api/patient/appointments/{appointment.id}/cancel', headers=patient_headers)
    assert resp.status_code == 409
    assert resp.get_json() == {
        'success': False,
        'error': 'Cannot change appointment from completed to cancelled.',
    }


def test_patient_cannot_call_doctor_actions(client, patient_headers, appointment):
    resp = client.put(f'/api/doctor/appointments/{appointment.id}/status', headers=patient_headers,
                      json={'action': 'confirm'})

    assert resp.status_code == 403
    db.session.refresh(appointment)
    assert appointment.status == 'booked'


def test_non_text_action_is_a_validation_error(client, doctor_headers, appointment):
    resp = client.put(f'/api/doctor/appointments/{appointment.id}/status', headers=doctor_headers,
                      json={'action': 5})

    assert resp.status_code == 400
    assert resp.get_json() == {'success': False, 'error': 'Invalid action.'}
    db.session.refresh(appointment)
    assert appointment.status == 'booked'
