from datetime import timedelta

from flask import Blueprint, current_app, g, jsonify, request
from flask_jwt_extended import create_access_token, jwt_required

from medibook.services.account_service import authenticate, register_patient
from medibook.utils.audit import log_audit
from medibook.utils.decorators import require_role

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

# Where each role lands after login
ROLE_HOME = {
    'admin': '/api/admin/dashboard',
    'doctor': '/api/doctor/dashboard',
    'patient': '/api/patient/dashboard',
}


def _issue_token(user):
    hours = current_app.config.get('JWT_ACCESS_TOKEN_HOURS', 8)
    access_token = create_access_token(
        identity=str(user.id),
        additional_claims={'role': user.role, 'email': user.email},
        expires_delta=timedelta(hours=hours),
    )
    return {
        'access_token': access_token,
        'token_type': 'bearer',
        'expires_in': hours * 3600,
        'redirect_to': ROLE_HOME.get(user.role),
    }


@auth_bp.route('/register', methods=['POST'])
def register():
    """
    Register a patient account (only patients can self-register).
    Body: { email, password, confirm_password, name, age, phone }
    """
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    patient = register_patient(
        email=data.get('email'),
        password=data.get('password'),
        confirm_password=data.get('confirm_password'),
        name=data.get('name'),
        age=data.get('age'),
        phone=data.get('phone'),
    )
    log_audit('patient', 'register', user_id=patient.user_id, entity_id=patient.id)

    return jsonify({
        'success': True,
        'data': patient.user.to_dict(),
        **_issue_token(patient.user),
        'message': 'Registration successful'
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login with email and password; returns a JWT carrying the user's role"""
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    email = data.get('email')
    password = data.get('password')
    if not email or not password:
        return jsonify({
            'success': False,
            'error': 'Email and password required'
        }), 400

    user = authenticate(email, password)
    if not user:
        return jsonify({
            'success': False,
            'error': 'Invalid login attempt.'
        }), 401

    return jsonify({
        'success': True,
        'data': user.to_dict(),
        **_issue_token(user),
    }), 200


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    """Stateless JWT: the client discards its token"""
    return jsonify({
        'success': True,
        'message': 'Logged out successfully (delete tokens on client)'
    }), 200


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
@require_role('admin', 'doctor', 'patient')
def get_current_user():
    """Current user plus their doctor/patient profile"""
    user = g.current_user
    profile = g.doctor or g.patient
    return jsonify({
        'success': True,
        'data': {
            **user.to_dict(),
            'profile': profile.to_dict() if profile else None,
        }
    }), 200
