"""
Prospect routes — intake from discovery plus funnel views.
"""
import logging
from datetime import datetime

from flask import Blueprint, request, jsonify

from app.errors import NotFound
from app.services import prospects as store

logger = logging.getLogger('routes.prospects')

bp = Blueprint('prospects', __name__)


def _int_arg(name, default=None, minimum=None):
    raw = request.args.get(name)
    if raw in (None, ''):
        return default
    value = int(raw)
    if minimum is not None and value < minimum:
        raise ValueError(f'{name} must be at least {minimum}')
    return value


@bp.route('/api/prospects', methods=['POST'])
def create_prospect():
    """Submit a discovered prospect."""
    data = request.json or {}
    try:
        prospect = store.create_prospect(
            name=data.get('name'),
            source=data.get('source'),
            score=data.get('score', 0),
            signal=data.get('signal'),
            platform_link=data.get('platform_link'),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(prospect.to_dict()), 201


@bp.route('/api/prospects')
def list_prospects():
    try:
        since_raw = request.args.get('since')
        since = datetime.fromisoformat(since_raw) if since_raw else None
        prospects = store.list_prospects(
            status=request.args.get('status') or None,
            min_score=_int_arg('min_score'),
            since=since,
            limit=_int_arg('limit', 50, minimum=1),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify({'prospects': [p.to_dict() for p in prospects], 'count': len(prospects)})


@bp.route('/api/prospects/priority')
def priority_prospects():
    """Qualified prospects (70+) from the last N hours (default 24)."""
    try:
        hours = _int_arg('hours', 24, minimum=1)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    prospects = store.priority_prospects(hours=hours)
    return jsonify({'prospects': [p.to_dict() for p in prospects], 'count': len(prospects)})


@bp.route('/api/prospects/stats')
def prospect_stats():
    return jsonify(store.pipeline_stats())


@bp.route('/api/prospects/<prospect_id>')
def get_prospect(prospect_id):
    try:
        prospect = store.find_by_id(prospect_id)
    except NotFound as e:
        return jsonify({'error': str(e)}), 404
    return jsonify(prospect.to_dict())


@bp.route('/api/prospects/<prospect_id>', methods=['PATCH'])
def update_prospect(prospect_id):
    data = request.json or {}
    status = data.get('status')
    if not status:
        return jsonify({'error': 'status is required'}), 400
    try:
        prospect = store.update_status(prospect_id, status)
    except NotFound as e:
        return jsonify({'error': str(e)}), 404
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(prospect.to_dict())
