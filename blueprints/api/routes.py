"""
API routes for JSON endpoints.
Provides the service health check.
"""

from flask import jsonify, current_app, Blueprint

from models.errors import PersistenceError
from models.services import get_services

api_bp = Blueprint('api', __name__)


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint (no authentication required).

    Returns:
        JSON with status, version and store reachability
    """
    try:
        get_services().store.all_laptops()
        store_status = 'ok'
    except PersistenceError as e:
        current_app.logger.error(f'Health check store failure: {e}')
        store_status = 'unavailable'

    status = 200 if store_status == 'ok' else 503
    return jsonify({
        'status': 'ok' if status == 200 else 'degraded',
        'store': store_status,
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'app': current_app.config.get('APP_NAME', 'Laptop Rental')
    }), status
