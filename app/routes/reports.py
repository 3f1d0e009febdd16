"""
Report routes — preview the daily report, or queue a send to Telegram.
"""
import logging

from flask import Blueprint, request, jsonify

from app.config import TELEGRAM_REPORT_CHAT_ID
from app.pipeline.report import generate_report, send_report

logger = logging.getLogger('routes.reports')

bp = Blueprint('reports', __name__)

# ── Lazy RQ queue (no Redis connection at import time) ───────────────────────

_queue = None


def _get_queue():
    global _queue
    if _queue is None:
        from app.extensions import redis_client
        from rq import Queue
        _queue = Queue(connection=redis_client)
    return _queue


@bp.route('/api/reports/preview')
def preview():
    """Build the report text without delivering it."""
    try:
        hours = int(request.args.get('hours', 24))
    except ValueError:
        return jsonify({'error': 'hours must be an integer'}), 400

    try:
        report = generate_report(hours=hours)
    except Exception as e:
        logger.error("Report preview failed: %s", e, exc_info=True)
        return jsonify({'error': 'Report generation failed'}), 500

    return jsonify({
        'text': report.text,
        'generated_at': report.generated_at.isoformat(),
        'prospects_count': report.prospects_count,
        'total_count': report.total_count,
        'qualified_count': report.qualified_count,
        'approaches': [
            {'name': name, 'script_id': script_id} for name, script_id, _ in report.approaches
        ],
        'errors': report.errors,
    })


@bp.route('/api/reports/send', methods=['POST'])
def send():
    """Manual trigger for the scheduled report. Runs on the RQ worker."""
    data = request.json or {}
    chat_id = data.get('chat_id') or TELEGRAM_REPORT_CHAT_ID
    if not chat_id:
        return jsonify({'error': 'chat_id required (TELEGRAM_REPORT_CHAT_ID not set)'}), 400

    job = _get_queue().enqueue(send_report, chat_id, job_timeout=600)
    logger.info("Report send queued for chat %s (job %s)", chat_id, job.id, extra={'chat_id': chat_id})
    return jsonify({'queued': True, 'job_id': job.id, 'chat_id': chat_id}), 202
