from functools import wraps
from flask import g, jsonify
from flask_jwt_extended import get_jwt_identity
from medibook.errors import UnauthorizedError
from medibook.extensions import db
from medibook.models import User


def resolve_identity(user_id, *roles):
    """
    Single authorization check behind every role-gated operation.

    Returns (user, profile) where profile is the Doctor or Patient row for
    doctor/patient callers and None for admins. Raises UnauthorizedError when
    the user is gone, the role does not match, or the profile is missing.
    """
    user = db.session.get(User, int(user_id)) if user_id is not None else None
    if not user:
        raise UnauthorizedError('Authentication required', status_code=401)

    if roles and user.role not in roles:
        raise UnauthorizedError(f'Permission denied. Required roles: {", ".join(roles)}')

    profile = None
    if user.role == 'doctor':
        profile = user.doctor
    elif user.role == 'patient':
        profile = user.patient
    if user.role != 'admin' and profile is None:
        raise UnauthorizedError(f'No {user.role} profile linked to this account')

    return user, profile


def require_role(*roles):
    """
    Decorator to require specific roles
    Usage: @require_role('doctor')

    Must be used together with @jwt_required() on the route. The resolved user
    is stored in ``g.current_user`` and the profile in ``g.patient`` or
    ``g.doctor``.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                user_id = int(get_jwt_identity())
            except (TypeError, ValueError):
                return jsonify({
                    'success': False,
                    'error': 'Authentication required'
                }), 401

            user, profile = resolve_identity(user_id, *roles)
            g.current_user = user
            g.patient = profile if user.role == 'patient' else None
            g.doctor = profile if user.role == 'doctor' else None

            return f(*args, **kwargs)
        return decorated_function
    return decorator
