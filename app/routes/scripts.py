"""
Script routes — generation and feedback.
"""
import logging

from flask import Blueprint, request, jsonify

from app.errors import GenerationError, InvalidFeedback, NotFound
from app.pipeline.scripts import generate_script, get_script, submit_feedback
from app.services import hive
from app.services.prospects import find_by_name

logger = logging.getLogger('routes.scripts')

bp = Blueprint('scripts', __name__)


@bp.route('/api/scripts/generate', methods=['POST'])
def generate():
    """Generate a script by prospect_id, or by best name match."""
    data = request.json or {}
    prospect_id = data.get('prospect_id')
    prospect_name = data.get('prospect_name')
    if not prospect_id and not prospect_name:
        return jsonify({'error': 'prospect_name or prospect_id required'}), 400

    try:
        if not prospect_id:
            prospect_id = find_by_name(prospect_name).id
        script = generate_script(
            prospect_id,
            data.get('script_type', 'approach'),
            tenant_id=data.get('tenant_id'),
        )
    except NotFound as e:
        return jsonify({'error': str(e)}), 404
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except GenerationError as e:
        logger.error("Script generation failed for prospect %s: %s", prospect_id, e)
        return jsonify({'error': 'Error generating script'}), 502

    return jsonify({'script_id': script.id, 'script': script.text, **script.to_dict()}), 201


@bp.route('/api/scripts/<script_id>')
def get_one(script_id):
    try:
        script = get_script(script_id)
    except NotFound as e:
        return jsonify({'error': str(e)}), 404
    return jsonify(script.to_dict())


@bp.route('/api/scripts/<script_id>/feedback', methods=['POST'])
def feedback(script_id):
    """Record no_response / got_reply / converted for a script."""
    data = request.json or {}
    try:
        script = submit_feedback(script_id, data.get('feedback'))
    except InvalidFeedback as e:
        return jsonify({'error': str(e), 'allowed': e.allowed}), 400
    except NotFound as e:
        return jsonify({'error': str(e)}), 404
    return jsonify({'success': True, 'script': script.to_dict()})


@bp.route('/api/feedback/stats')
def feedback_stats():
    return jsonify(hive.feedback_stats())


@bp.route('/api/feedback/recent')
def recent_feedback():
    try:
        limit = int(request.args.get('limit', 20))
    except ValueError:
        return jsonify({'error': 'limit must be an integer'}), 400
    if limit < 1:
        return jsonify({'error': 'limit must be at least 1'}), 400
    include_pending = request.args.get('include_pending') == 'true'
    return jsonify({'feedback': hive.recent_feedback(limit=limit, include_pending=include_pending)})
