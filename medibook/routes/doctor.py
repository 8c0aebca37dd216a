from flask import Blueprint, g, jsonify, request
from flask_jwt_extended import jwt_required

from medibook.models import WEEKDAYS
from medibook.services import appointment_service, availability_service, report_service
from medibook.services.account_service import update_doctor_profile
from medibook.utils.audit import log_audit
from medibook.utils.decorators import require_role

doctor_bp = Blueprint('doctor', __name__, url_prefix='/api/doctor')


@doctor_bp.route('/dashboard', methods=['GET'])
@jwt_required()
@require_role('doctor')
def dashboard():
    return jsonify({
        'success': True,
        'data': report_service.doctor_dashboard(g.doctor)
    }), 200


@doctor_bp.route('/profile', methods=['GET'])
@jwt_required()
@require_role('doctor')
def get_profile():
    return jsonify({'success': True, 'data': g.doctor.to_dict()}), 200


@doctor_bp.route('/profile', methods=['PUT'])
@jwt_required()
@require_role('doctor')
def update_profile():
    """Body: { name, specialty, consultation_fee, bio }"""
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    doctor = update_doctor_profile(
        g.doctor,
        name=data.get('name'),
        specialty=data.get('specialty'),
        consultation_fee=data.get('consultation_fee'),
        bio=data.get('bio'),
    )
    return jsonify({
        'success': True,
        'data': doctor.to_dict(),
        'message': 'Profile updated successfully!'
    }), 200


# --- Availability -----------------------------------------------------------

@doctor_bp.route('/availability', methods=['GET'])
@jwt_required()
@require_role('doctor')
def list_availability():
    """Own windows by weekday then start time. Query params: location (optional)"""
    location = request.args.get('location', type=str)
    windows = availability_service.list_windows(g.doctor.id, location)
    return jsonify({
        'success': True,
        'data': [w.to_dict() for w in windows],
        'days': list(WEEKDAYS)
    }), 200


@doctor_bp.route('/availability', methods=['POST'])
@jwt_required()
@require_role('doctor')
def add_availability():
    """Body: { day, start_time, end_time, location }"""
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    window = availability_service.add_window(
        g.doctor.id,
        data.get('day'),
        data.get('start_time'),
        data.get('end_time'),
        data.get('location'),
    )
    return jsonify({
        'success': True,
        'data': window.to_dict(),
        'message': 'Availability added successfully!'
    }), 201


@doctor_bp.route('/availability/<int:availability_id>', methods=['DELETE'])
@jwt_required()
@require_role('doctor')
def delete_availability(availability_id):
    if not availability_service.remove_window(availability_id, doctor_id=g.doctor.id):
        return jsonify({
            'success': False,
            'error': 'Availability not found.'
        }), 404
    return jsonify({
        'success': True,
        'message': 'Availability removed successfully!'
    }), 200


# --- Appointments -----------------------------------------------------------

@doctor_bp.route('/appointments', methods=['GET'])
@jwt_required()
@require_role('doctor')
def list_appointments():
    """Query params: filter = upcoming | today | past | cancelled"""
    filter_name = request.args.get('filter', type=str)
    appointments = appointment_service.list_doctor_appointments(g.doctor, filter_name)
    return jsonify({
        'success': True,
        'data': [a.to_dict() for a in appointments],
        'filter': filter_name
    }), 200


@doctor_bp.route('/appointments/<int:appointment_id>/status', methods=['PUT'])
@jwt_required()
@require_role('doctor')
def update_appointment_status(appointment_id):
    """
    Body: { action: confirm | cancel | complete | reschedule, new_date, new_time }
    new_date and new_time are required for reschedule.
    """
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    action = data.get('action')
    appointment = appointment_service.apply_doctor_action(
        g.doctor,
        appointment_id,
        action,
        new_date=data.get('new_date'),
        new_time=data.get('new_time'),
    )
    log_audit('appointment', action.strip().lower(), user_id=g.current_user.id, entity_id=appointment.id,
              details={'status': appointment.status})

    return jsonify({
        'success': True,
        'data': appointment.to_dict(),
        'message': f'Appointment {appointment.status} successfully!'
    }), 200


@doctor_bp.route('/appointments/<int:appointment_id>/notes', methods=['GET'])
@jwt_required()
@require_role('doctor')
def get_patient_notes(appointment_id):
    return jsonify({
        'success': True,
        'data': appointment_service.get_notes(g.doctor, appointment_id)
    }), 200


@doctor_bp.route('/appointments/<int:appointment_id>/notes', methods=['PUT'])
@jwt_required()
@require_role('doctor')
def save_patient_notes(appointment_id):
    """Body: { notes, prescription }"""
    data = request.get_json() or {}
    record = appointment_service.save_notes(g.doctor, appointment_id, data.get('notes'), data.get('prescription'))
    return jsonify({
        'success': True,
        'data': record.to_dict(),
        'message': 'Patient notes saved successfully!'
    }), 200
