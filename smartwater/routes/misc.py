from flask import Blueprint, jsonify, current_app
from smartwater import db
from smartwater.utils.auth import require_auth
from sqlalchemy import text
from datetime import datetime, timezone

bp = Blueprint('misc', __name__)


@bp.route('/health', methods=['GET'])
def health():
    """
    Liveness and database check
    ---
    tags:
      - System
    responses:
      200:
        description: Service and database are up
      503:
        description: Database unreachable
    """
    try:
        db.session.execute(text('SELECT 1'))
        database = 'ok'
    except Exception as e:
        current_app.logger.error(f"Health check database error: {e}")
        db.session.rollback()
        database = 'unavailable'

    status = 200 if database == 'ok' else 503
    return jsonify({
        'status': 'ok' if status == 200 else 'degraded',
        'database': database,
        'timestamp': datetime.now(timezone.utc).isoformat(),
    }), status


@bp.route('/google-maps-key', methods=['GET'])
@require_auth
def google_maps_key():
    key = current_app.config.get('GOOGLE_MAPS_API_KEY')
    if not key:
        return jsonify({'error': 'Google Maps API key not configured'}), 404
    return jsonify({'apiKey': key}), 200
