from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from medibook import create_app
from medibook.extensions import db
from medibook.models import Doctor, DoctorAvailability, Patient, User


def next_weekday(weekday, start=None):
    """First date strictly after ``start`` falling on ``weekday`` (Monday=0)."""
    start = start or date.today()
    days_ahead = (weekday - start.weekday()) % 7 or 7
    return start + timedelta(days=days_ahead)


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(email, role, name, password='secret123'):
    user = User(email=email, role=role, name=name)
    user.set_password(password)
    db.session.add(user)
    return user


@pytest.fixture
def admin_user(app):
    user = _make_user('admin@medibook.test', 'admin', 'Admin')
    db.session.commit()
    return user


@pytest.fixture
def doctor(app):
    user = _make_user('smith@medibook.test', 'doctor', 'Smith')
    doctor = Doctor(user=user, specialty='Cardiology', consultation_fee=Decimal('150.00'))
    db.session.add(doctor)
    db.session.flush()
    db.session.add(DoctorAvailability(
        doctor_id=doctor.id, day='Monday', start_time=time(9, 0), end_time=time(17, 0), location='Main Hospital',
    ))
    db.session.commit()
    return doctor


@pytest.fixture
def other_doctor(app):
    user = _make_user('jones@medibook.test', 'doctor', 'Jones')
    doctor = Doctor(user=user, specialty='Dermatology', consultation_fee=Decimal('90.00'))
    db.session.add(doctor)
    db.session.flush()
    db.session.add(DoctorAvailability(
        doctor_id=doctor.id, day='Tuesday', start_time=time(10, 0), end_time=time(12, 0), location='North Clinic',
    ))
    db.session.commit()
    return doctor


@pytest.fixture
def patient(app):
    user = _make_user('alice@medibook.test', 'patient', 'Alice')
    patient = Patient(user=user, age=34, phone='555-0100')
    db.session.add(patient)
    db.session.commit()
    return patient


@pytest.fixture
def other_patient(app):
    user = _make_user('bob@medibook.test', 'patient', 'Bob')
    patient = Patient(user=user, age=41)
    db.session.add(patient)
    db.session.commit()
    return patient


def auth_headers(user):
    token = create_access_token(identity=str(user.id), additional_claims={'role': user.role})
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture
def doctor_headers(doctor):
    return auth_headers(doctor.user)


@pytest.fixture
def patient_headers(patient):
    return auth_headers(patient.user)


@pytest.fixture
def monday():
    return next_weekday(0)
