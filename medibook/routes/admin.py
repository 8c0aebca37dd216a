from flask import Blueprint, g, jsonify, request
from flask_jwt_extended import jwt_required

from medibook.models import WEEKDAYS
from medibook.services import availability_service, doctor_service, report_service
from medibook.utils.audit import log_audit, recent_entries
from medibook.utils.decorators import require_role

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/dashboard', methods=['GET'])
@jwt_required()
@require_role('admin')
def dashboard():
    return jsonify({'success': True, 'data': report_service.admin_dashboard()}), 200


@admin_bp.route('/reports', methods=['GET'])
@jwt_required()
@require_role('admin')
def reports():
    return jsonify({'success': True, 'data': report_service.admin_report()}), 200


@admin_bp.route('/patients', methods=['GET'])
@jwt_required()
@require_role('admin')
def list_patients():
    patients = doctor_service.list_patients()
    return jsonify({'success': True, 'data': [p.to_dict() for p in patients]}), 200


# --- Doctors ----------------------------------------------------------------

@admin_bp.route('/doctors', methods=['GET'])
@jwt_required()
@require_role('admin')
def list_doctors():
    doctors = doctor_service.list_doctors()
    return jsonify({
        'success': True,
        'data': [d.to_dict(include_availability=True) for d in doctors],
        'specialties': doctor_service.SPECIALTIES
    }), 200


@admin_bp.route('/doctors', methods=['POST'])
@jwt_required()
@require_role('admin')
def create_doctor():
    """
    Create a doctor account and profile.
    Body: { name, email, specialty, consultation_fee, bio, password (optional) }
    """
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    doctor = doctor_service.create_doctor(
        name=data.get('name'),
        email=data.get('email'),
        specialty=data.get('specialty'),
        consultation_fee=data.get('consultation_fee'),
        bio=data.get('bio'),
        password=data.get('password'),
    )
    log_audit('doctor', 'create', user_id=g.current_user.id, entity_id=doctor.id,
              details={'email': doctor.user.email})
    return jsonify({
        'success': True,
        'data': doctor.to_dict(),
        'message': 'Doctor added successfully!'
    }), 201


@admin_bp.route('/doctors/<int:doctor_id>', methods=['GET'])
@jwt_required()
@require_role('admin')
def get_doctor(doctor_id):
    doctor = doctor_service.get_doctor_or_404(doctor_id)
    return jsonify({
        'success': True,
        'data': doctor.to_dict(include_availability=True),
        'specialties': doctor_service.SPECIALTIES
    }), 200


@admin_bp.route('/doctors/<int:doctor_id>', methods=['PUT'])
@jwt_required()
@require_role('admin')
def update_doctor(doctor_id):
    """Body: { name, email, specialty, consultation_fee, bio }"""
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    doctor = doctor_service.update_doctor(
        doctor_id,
        name=data.get('name'),
        email=data.get('email'),
        specialty=data.get('specialty'),
        consultation_fee=data.get('consultation_fee'),
        bio=data.get('bio'),
    )
    log_audit('doctor', 'update', user_id=g.current_user.id, entity_id=doctor.id)
    return jsonify({
        'success': True,
        'data': doctor.to_dict(),
        'message': 'Doctor updated successfully!'
    }), 200


@admin_bp.route('/doctors/<int:doctor_id>', methods=['DELETE'])
@jwt_required()
@require_role('admin')
def delete_doctor(doctor_id):
    info = doctor_service.delete_doctor(doctor_id)
    log_audit('doctor', 'delete', user_id=g.current_user.id, entity_id=doctor_id, details=info)
    return jsonify({
        'success': True,
        'data': info,
        'message': 'Doctor deleted successfully!'
    }), 200


# --- Availability of any doctor ---------------------------------------------

@admin_bp.route('/doctors/<int:doctor_id>/availability', methods=['GET'])
@jwt_required()
@require_role('admin')
def manage_availability(doctor_id):
    doctor = doctor_service.get_doctor_or_404(doctor_id)
    windows = availability_service.list_windows(doctor.id)
    return jsonify({
        'success': True,
        'data': {
            'doctor': doctor.to_dict(),
            'availability': [w.to_dict() for w in windows],
        },
        'days': list(WEEKDAYS)
    }), 200


@admin_bp.route('/doctors/<int:doctor_id>/availability', methods=['POST'])
@jwt_required()
@require_role('admin')
def add_availability(doctor_id):
    """Body: { day, start_time, end_time, location }"""
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    window = availability_service.add_window(
        doctor_id,
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


@admin_bp.route('/availability/<int:availability_id>', methods=['DELETE'])
@jwt_required()
@require_role('admin')
def delete_availability(availability_id):
    if not availability_service.remove_window(availability_id):
        return jsonify({
            'success': False,
            'error': 'Availability not found.'
        }), 404
    return jsonify({
        'success': True,
        'message': 'Availability removed successfully!'
    }), 200


# --- Audit trail ------------------------------------------------------------

@admin_bp.route('/audit', methods=['GET'])
@jwt_required()
@require_role('admin')
def audit_trail():
    """Query params: entity_type, entity_id, limit (default 50)"""
    entries = recent_entries(
        entity_type=request.args.get('entity_type', type=str),
        entity_id=request.args.get('entity_id', type=str),
        limit=request.args.get('limit', 50, type=int),
    )
    return jsonify({'success': True, 'data': [e.to_dict() for e in entries]}), 200
