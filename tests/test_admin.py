from datetime import time
from decimal import Decimal

import pytest

from medibook.errors import NotFoundError, ValidationError
from medibook.extensions import db
from medibook.models import Appointment, AppointmentStatus, AuditLog, Doctor, DoctorAvailability, Feedback, Payment, User
from medibook.services.doctor_service import create_doctor, delete_doctor, get_doctor_or_404, update_doctor
from medibook.services.report_service import admin_report


def test_create_doctor_provisions_user_and_profile(app):
    doctor = create_doctor('Lee', ' Lee@Medibook.test ', 'Neurology', '200', 'Neurologist')

    assert doctor.user.role == 'doctor'
    assert doctor.user.email == 'lee@medibook.test'
    assert doctor.user.check_password(app.config['DEFAULT_DOCTOR_PASSWORD'])
    assert doctor.consultation_fee == Decimal('200.00')


def test_create_doctor_rejects_duplicate_email(doctor):
    with pytest.raises(ValidationError):
        create_doctor('Other Smith', 'SMITH@medibook.test')


@pytest.mark.parametrize('fee', ['abc', '-5'])
def test_create_doctor_rejects_bad_fee(app, fee):
    with pytest.raises(ValidationError):
        create_doctor('Lee', 'lee@medibook.test', consultation_fee=fee)
    assert User.query.count() == 0


def test_update_doctor(doctor, other_doctor):
    update_doctor(doctor.id, 'Smith-Jones', 'smith@medibook.test', 'Cardiology', '175.5')
    assert doctor.name == 'Smith-Jones'
    assert doctor.consultation_fee == Decimal('175.50')

    with pytest.raises(ValidationError):
        update_doctor(doctor.id, 'Smith', 'jones@medibook.test')
    with pytest.raises(NotFoundError):
        update_doctor(999, 'Nobody', 'nobody@medibook.test')


def test_delete_doctor_removes_user_and_windows(doctor):
    doctor_id, user_id = doctor.id, doctor.user_id

    info = delete_doctor(doctor_id)

    assert info['name'] == 'Smith'
    assert db.session.get(Doctor, doctor_id) is None
    assert db.session.get(User, user_id) is None
    assert DoctorAvailability.query.count() == 0


def test_delete_doctor_with_appointments_is_refused(doctor, patient, monday):
    db.session.add(Appointment(
        patient_id=patient.id, doctor_id=doctor.id, appointment_date=monday,
        start_time=time(9, 0), end_time=time(9, 30), location='Main Hospital',
        status=AppointmentStatus.CANCELLED,
    ))
    db.session.commit()

    with pytest.raises(ValidationError):
        delete_doctor(doctor.id)
    assert db.session.get(Doctor, doctor.id) is not None


def test_delete_doctor_with_feedback_is_refused(doctor, patient):
    db.session.add(Feedback(patient_id=patient.id, doctor_id=doctor.id, rating=4))
    db.session.commit()

    with pytest.raises(ValidationError):
        delete_doctor(doctor.id)


def test_admin_report_counts_and_revenue(doctor, other_doctor, patient, monday):
    rows = [
        (doctor, time(9, 0), AppointmentStatus.COMPLETED, 'paid'),
        (doctor, time(9, 30), AppointmentStatus.CANCELLED, 'pending'),
        (other_doctor, time(10, 0), AppointmentStatus.BOOKED, 'paid'),
    ]
    for who, start, status, paid in rows:
        appointment = Appointment(
            patient_id=patient.id, doctor_id=who.id, appointment_date=monday,
            start_time=start, end_time=time(start.hour, start.minute + 15), location='Main Hospital', status=status,
        )
        db.session.add(appointment)
        db.session.flush()
        db.session.add(Payment(appointment_id=appointment.id, amount=who.consultation_fee, status=paid))
    db.session.commit()

    report = admin_report()

    assert report['total_appointments'] == 3
    assert report['completed_appointments'] == 1
    assert report['cancelled_appointments'] == 1
    assert report['pending_payments'] == 1
    assert report['total_revenue'] == 240.0
    assert report['revenue_by_doctor'] == {
        doctor.id: {'doctor_name': 'Smith', 'revenue': 150.0},
        other_doctor.id: {'doctor_name': 'Jones', 'revenue': 90.0},
    }
    assert report['appointment_stats'] == {'completed': 1, 'cancelled': 1, 'booked': 1}


def test_revenue_kept_apart_for_doctors_sharing_a_name(doctor, other_doctor, patient, monday):
    other_doctor.user.name = 'Smith'
    for who, start in ((doctor, time(9, 0)), (other_doctor, time(10, 0))):
        appointment = Appointment(
            patient_id=patient.id, doctor_id=who.id, appointment_date=monday,
            start_time=start, end_time=time(start.hour, 30), location='Main Hospital',
            status=AppointmentStatus.COMPLETED,
        )
        db.session.add(appointment)
        db.session.flush()
        db.session.add(Payment(appointment_id=appointment.id, amount=who.consultation_fee, status='paid'))
    db.session.commit()

    revenue = admin_report()['revenue_by_doctor']

    assert revenue[doctor.id] == {'doctor_name': 'Smith', 'revenue': 150.0}
    assert revenue[other_doctor.id] == {'doctor_name': 'Smith', 'revenue': 90.0}


def test_doctor_lookup_rejects_non_numeric_id(app):
    with pytest.raises(ValidationError):
        get_doctor_or_404('abc')


def test_admin_doctor_crud_over_http(client, admin_headers):
    resp = client.post('/api/admin/doctors', headers=admin_headers, json={
        'name': 'Patel', 'email': 'patel@medibook.test', 'specialty': 'Pediatrics', 'consultation_fee': 80,
    })
    assert resp.status_code == 201
    doctor_id = resp.get_json()['data']['id']

    resp = client.post(f'/api/admin/doctors/{doctor_id}/availability', headers=admin_headers, json={
        'day': 'Friday', 'start_time': '08:00', 'end_time': '12:00', 'location': 'Children Ward',
    })
    assert resp.status_code == 201

    resp = client.get(f'/api/admin/doctors/{doctor_id}', headers=admin_headers)
    assert resp.status_code == 200
    assert resp.get_json()['data']['availability'][0]['location'] == 'Children Ward'

    resp = client.delete(f'/api/admin/doctors/{doctor_id}', headers=admin_headers)
    assert resp.status_code == 200

    resp = client.get(f'/api/admin/doctors/{doctor_id}', headers=admin_headers)
    assert resp.status_code == 404

    actions = [entry.action for entry in AuditLog.query.filter_by(entity_type='doctor').order_by(AuditLog.id)]
    assert actions == ['create', 'delete']


def test_admin_routes_require_admin(client, patient_headers, doctor_headers):
    assert client.get('/api/admin/dashboard', headers=patient_headers).status_code == 403
    assert client.get('/api/admin/dashboard', headers=doctor_headers).status_code == 403
    assert client.get('/api/admin/dashboard').status_code == 401


def test_admin_dashboard(client, admin_headers, doctor, patient):
    resp = client.get('/api/admin/dashboard', headers=admin_headers)

    assert resp.status_code == 200
    data = resp.get_json()['data']
    assert data['total_doctors'] == 1
    assert data['total_patients'] == 1
    assert data['total_revenue'] == 0.0


def test_audit_trail_lists_newest_first(client, admin_headers, doctor):
    client.put(f'/api/admin/doctors/{doctor.id}', headers=admin_headers, json={
        'name': 'Smith', 'email': 'smith@medibook.test', 'specialty': 'Cardiology', 'consultation_fee': 160,
    })
    client.post('/api/admin/doctors', headers=admin_headers, json={'name': 'Patel', 'email': 'patel@medibook.test'})

    resp = client.get('/api/admin/audit', headers=admin_headers, query_string={'entity_type': 'doctor'})

    assert resp.status_code == 200
    entries = resp.get_json()['data']
    assert [e['action'] for e in entries] == ['create', 'update']
    assert entries[1]['entity'] == f'doctor:{doctor.id}'
    assert entries[1]['actor'] == 'admin@medibook.test'
    assert entries[0]['details'] == {'email': 'patel@medibook.test'}
