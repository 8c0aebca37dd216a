"""
Health check endpoints for monitoring and load balancers
"""
from datetime import datetime

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from medibook.extensions import db

health_bp = Blueprint('health', __name__, url_prefix='/health')


def _stamp():
    return datetime.utcnow().isoformat()


@health_bp.route('', methods=['GET'])
@health_bp.route('/ping', methods=['GET'])
def health_check():
    """Process is up; no database round trip"""
    return jsonify({'status': 'healthy', 'service': 'medibook', 'timestamp': _stamp()}), 200


@health_bp.route('/live', methods=['GET'])
def liveness_check():
    return jsonify({'status': 'alive', 'timestamp': _stamp()}), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """
    Ready once the database answers.

    Also reports the availability policy so operators can see whether slot
    checks fail open while the store is degraded.
    """
    try:
        db.session.execute(db.text('SELECT 1'))
        database = 'connected'
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.warning("Readiness check failed: %s", e)
        database = 'unavailable'

    ready = database == 'connected'
    return jsonify({
        'status': 'ready' if ready else 'not_ready',
        'database': database,
        'availability_fail_open': current_app.config.get('AVAILABILITY_FAIL_OPEN', True),
        'timestamp': _stamp(),
    }), 200 if ready else 503
