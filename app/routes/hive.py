"""
Hive routes — winning scripts and performance breakdowns.
"""
from flask import Blueprint, request, jsonify

from app.services import hive

bp = Blueprint('hive', __name__)


def _positive_int_arg(name, default):
    """Query arg as an int >= 1. Raises ValueError with a client-facing message."""
    try:
        value = int(request.args.get(name, default))
    except ValueError:
        raise ValueError(f'{name} must be an integer')
    if value < 1:
        raise ValueError(f'{name} must be at least 1')
    return value


@bp.route('/api/hive/learnings')
def learnings():
    try:
        limit = _positive_int_arg('limit', 50)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    rows = hive.list_learnings(learning_type=request.args.get('type') or None, limit=limit)
    return jsonify({'learnings': [row.to_dict() for row in rows], 'count': len(rows)})


@bp.route('/api/hive/leaderboard')
def leaderboard():
    return jsonify({'leaderboard': [row.to_dict() for row in hive.leaderboard()]})


@bp.route('/api/hive/source-performance')
def source_performance():
    return jsonify({'sources': hive.source_performance()})


@bp.route('/api/hive/tenant-stats')
def tenant_stats():
    return jsonify({'tenants': hive.tenant_stats()})


@bp.route('/api/hive/trends')
def trends():
    """Daily script and learning activity over the last N days (default 30)."""
    try:
        days = _positive_int_arg('days', 30)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(hive.trends(days=days))


@bp.route('/api/hive/top-signals')
def top_signals():
    try:
        limit = _positive_int_arg('limit', 10)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify({'signals': hive.top_signals(limit=limit)})
