"""
Monitor routes — liveness check and circuit breaker health.
"""
import logging

from flask import Blueprint, jsonify
from sqlalchemy import text

from app.database import get_session
from app.services.circuit_breaker import get_all_breakers

logger = logging.getLogger('routes.monitor')

bp = Blueprint('monitor', __name__)


@bp.route('/health')
def health():
    """Liveness check. Reports database reachability without failing the check."""
    session = get_session()
    try:
        session.execute(text('SELECT 1'))
        database = 'ok'
    except Exception as e:
        logger.warning("Database health check failed: %s", e)
        database = 'unreachable'
    finally:
        session.close()
    return jsonify({'status': 'ok', 'database': database})


@bp.route('/api/health')
def api_health():
    """Circuit breaker state for every external service."""
    services = {name: cb.get_health() for name, cb in get_all_breakers().items()}
    return jsonify({'services': services})


@bp.route('/api/health/<service>/reset', methods=['POST'])
def reset_circuit(service):
    breaker = get_all_breakers().get(service)
    if breaker is None:
        return jsonify({'error': f'Unknown service: {service}'}), 404
    ok = breaker.reset()
    return jsonify({'ok': ok, 'service': service, 'health': breaker.get_health()}), (200 if ok else 503)
