from flask import Blueprint, g, jsonify, request, url_for
from flask_jwt_extended import jwt_required

from medibook.models import Doctor
from medibook.services import appointment_service, booking_service, payment_service, report_service
from medibook.services.account_service import update_patient_profile
from medibook.services.availability_service import list_windows
from medibook.services.feedback_service import doctor_choices, submit_feedback
from medibook.utils.audit import log_audit
from medibook.utils.decorators import require_role

patient_bp = Blueprint('patient', __name__, url_prefix='/api/patient')


@patient_bp.route('/dashboard', methods=['GET'])
@jwt_required()
@require_role('patient')
def dashboard():
    return jsonify({
        'success': True,
        'data': report_service.patient_dashboard(g.patient)
    }), 200


# --- Booking workflow -------------------------------------------------------

@patient_bp.route('/doctors/search', methods=['GET'])
@jwt_required()
@require_role('patient')
def search_doctors():
    """
    Step 1: search doctors.
    Query params (all optional, AND-combined): specialty, location, day
    """
    specialty = request.args.get('specialty', type=str)
    location = request.args.get('location', type=str)
    day = request.args.get('day', type=str)

    doctors = booking_service.search_doctors(specialty, location, day)

    return jsonify({
        'success': True,
        'data': [d.to_dict(include_availability=True) for d in doctors],
        'total_doctors': Doctor.query.count(),
        'filtered_doctors': len(doctors),
        'criteria': {'specialty': specialty, 'location': location, 'day': day},
        'options': booking_service.search_options(),
    }), 200


@patient_bp.route('/doctors/<int:doctor_id>', methods=['GET'])
@jwt_required()
@require_role('patient')
def select_doctor(doctor_id):
    """Step 2: the chosen doctor with fee and availability"""
    doctor = booking_service.get_doctor(doctor_id)
    location = request.args.get('location', type=str)
    return jsonify({
        'success': True,
        'data': {
            **doctor.to_dict(),
            'selected_location': location,
            'availability': [w.to_dict() for w in list_windows(doctor.id, location)],
        }
    }), 200


@patient_bp.route('/booking/select', methods=['POST'])
@jwt_required()
@require_role('patient')
def select_date_time():
    """
    Step 2: choose date, time and location.
    Body: { doctor_id, location, appointment_date (YYYY-MM-DD), start_time (HH:MM) }

    With a date but no time the response lists the time choices (step
    "select_time"). With everything present and the slot free it returns a
    draft token for the confirmation step.
    """
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    result = booking_service.select_date_time(
        g.patient,
        doctor_id=data.get('doctor_id'),
        location=data.get('location'),
        appointment_date=data.get('appointment_date'),
        start_time=data.get('start_time'),
    )
    if result['step'] == 'confirm':
        result['redirect_to'] = url_for('patient.confirm_view', draft=result['draft_token'])

    return jsonify({'success': True, 'data': result}), 200


@patient_bp.route('/booking/confirm', methods=['GET'])
@jwt_required()
@require_role('patient')
def confirm_view():
    """Step 3 (view): show the stored draft. Query param: draft"""
    draft = booking_service.load_draft(g.current_user.id, request.args.get('draft', type=str))
    return jsonify({'success': True, 'data': draft}), 200


@patient_bp.route('/booking/confirm', methods=['POST'])
@jwt_required()
@require_role('patient')
def confirm_booking():
    """
    Step 3: confirm the draft.
    Body: { draft_token }
    Creates the appointment and its pending payment.
    """
    data = request.get_json() or {}
    appointment, payment, message = booking_service.confirm_booking(g.patient, data.get('draft_token'))

    log_audit('appointment', 'create', user_id=g.current_user.id, entity_id=appointment.id,
              details={'doctor_id': appointment.doctor_id,
                       'date': appointment.appointment_date.isoformat(),
                       'start_time': appointment.start_time.strftime('%H:%M'),
                       'payment_id': payment.id})

    return jsonify({
        'success': True,
        'data': {
            'appointment': appointment.to_dict(),
            'payment': payment.to_dict(),
        },
        'message': message
    }), 201


# --- Appointments, payments, records ----------------------------------------

@patient_bp.route('/appointments', methods=['GET'])
@jwt_required()
@require_role('patient')
def list_appointments():
    """Query params: filter = upcoming | past | cancelled"""
    filter_name = request.args.get('filter', type=str)
    appointments = appointment_service.list_patient_appointments(g.patient, filter_name)
    return jsonify({
        'success': True,
        'data': [a.to_dict() for a in appointments],
        'filter': filter_name
    }), 200


@patient_bp.route('/appointments/<int:appointment_id>/cancel', methods=['POST'])
@jwt_required()
@require_role('patient')
def cancel_appointment(appointment_id):
    appointment = appointment_service.cancel_by_patient(g.patient, appointment_id)
    log_audit('appointment', 'cancel', user_id=g.current_user.id, entity_id=appointment.id,
              details={'by': 'patient'})
    return jsonify({
        'success': True,
        'data': appointment.to_dict(),
        'message': 'Appointment cancelled successfully!'
    }), 200


@patient_bp.route('/payments', methods=['GET'])
@jwt_required()
@require_role('patient')
def list_payments():
    payments = payment_service.list_payments(g.patient)
    return jsonify({'success': True, 'data': [p.to_dict() for p in payments]}), 200


@patient_bp.route('/payments/<int:payment_id>/pay', methods=['POST'])
@jwt_required()
@require_role('patient')
def make_payment(payment_id):
    payment = payment_service.mark_paid(g.patient, payment_id)
    log_audit('payment', 'pay', user_id=g.current_user.id, entity_id=payment.id,
              details={'amount': payment.amount})
    return jsonify({
        'success': True,
        'data': payment.to_dict(),
        'message': 'Payment completed successfully!'
    }), 200


@patient_bp.route('/records', methods=['GET'])
@jwt_required()
@require_role('patient')
def medical_records():
    records = appointment_service.list_medical_records(g.patient)
    return jsonify({'success': True, 'data': [r.to_dict() for r in records]}), 200


# --- Profile and feedback ---------------------------------------------------

@patient_bp.route('/profile', methods=['GET'])
@jwt_required()
@require_role('patient')
def get_profile():
    return jsonify({'success': True, 'data': g.patient.to_dict()}), 200


@patient_bp.route('/profile', methods=['PUT'])
@jwt_required()
@require_role('patient')
def update_profile():
    """Body: { name, age, phone }"""
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    patient = update_patient_profile(g.patient, name=data.get('name'), age=data.get('age'), phone=data.get('phone'))
    return jsonify({
        'success': True,
        'data': patient.to_dict(),
        'message': 'Profile updated successfully!'
    }), 200


@patient_bp.route('/feedback', methods=['GET'])
@jwt_required()
@require_role('patient')
def feedback_form():
    return jsonify({'success': True, 'data': {'doctors': doctor_choices()}}), 200


@patient_bp.route('/feedback', methods=['POST'])
@jwt_required()
@require_role('patient')
def create_feedback():
    """Body: { rating (1-5), comment, doctor_id (optional) }"""
    data = request.get_json()
    if not data:
        return jsonify({
            'success': False,
            'error': 'Request body must be JSON'
        }), 400

    feedback = submit_feedback(g.patient, data.get('rating'), data.get('comment'), data.get('doctor_id'))
    log_audit('feedback', 'create', user_id=g.current_user.id, entity_id=feedback.id,
              details={'doctor_id': feedback.doctor_id, 'rating': feedback.rating})
    return jsonify({
        'success': True,
        'data': feedback.to_dict(),
        'message': 'Thank you for your feedback!'
    }), 201
