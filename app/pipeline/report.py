"""
Daily prospect report — summary of recent prospects plus suggested approaches.

    FETCH      → prospects from the lookback window + pipeline totals
    SUMMARIZE  → one block per prospect
    APPROACHES → up to 3 qualified prospects get a brief approach script
    TOTALS     → all-time / qualified counts

Only FETCH can fail the report. Each approach generation is isolated: a
timeout or bad completion is logged, recorded on Report.errors, and that
prospect is left out of the "Suggested Approaches" section. Approaches run
one at a time.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from app.config import (
    QUALIFIED_SCORE, REPORT_LOOKBACK_HOURS, REPORT_MAX_APPROACHES,
    REPORT_SIGNAL_PREVIEW, TELEGRAM_REPORT_CHAT_ID,
)
from app.database import utcnow
from app.pipeline.scripts import generate_script
from app.services import ai_client
from app.services.notifications import deliver, notify_report_failed
from app.services.prospects import count_prospects, list_since

logger = logging.getLogger('pipeline.report')

REPORT_EMOJI = '🐯'


@dataclass
class Report:
    """Output of one report run."""
    text: str
    generated_at: datetime
    prospects_count: int = 0
    total_count: int = 0
    qualified_count: int = 0
    # (prospect name, script id, script text)
    approaches: List[Tuple[str, str, str]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _score_marker(score):
    if score >= 80:
        return '🔥'
    if score >= QUALIFIED_SCORE:
        return '✅'
    return '📋'


def _prospect_lines(index, prospect):
    lines = [
        f"*{index}. {prospect.name}* {_score_marker(prospect.score)}",
        f"Score: {prospect.score}/100 | Source: {prospect.source}",
    ]
    if prospect.signal:
        lines.append(f"Signal: _{prospect.signal[:REPORT_SIGNAL_PREVIEW]}_")
    lines.append('')
    return lines


def select_for_approaches(prospects, cap=REPORT_MAX_APPROACHES):
    """Highest-scoring qualified prospects, at most `cap`. Input is score-ordered."""
    return [p for p in prospects if p.score >= QUALIFIED_SCORE][:cap]


def _generate_approaches(candidates, report):
    """Sequential, per-prospect isolated script generation."""
    for prospect in candidates:
        try:
            script = generate_script(prospect.id, 'approach', brief=True)
        except Exception as e:
            msg = f"Approach for {prospect.name} skipped: {e}"
            logger.warning("%s", msg, exc_info=True, extra={'prospect_id': prospect.id})
            report.errors.append(msg)
            continue
        report.approaches.append((prospect.name, script.id, script.text))


def generate_report(hours: int = REPORT_LOOKBACK_HOURS, now: Optional[datetime] = None) -> Report:
    """
    Build the report text. Raises only if the prospect store cannot be read.
    """
    now = now or utcnow()
    since = now - timedelta(hours=hours)

    # Store errors propagate
    prospects = list_since(since)
    total = count_prospects()
    qualified = count_prospects(min_score=QUALIFIED_SCORE)

    report = Report(
        text='',
        generated_at=now,
        prospects_count=len(prospects),
        total_count=total,
        qualified_count=qualified,
    )

    lines = [
        f"{REPORT_EMOJI} *Daily Prospect Report*",
        now.strftime('%A, %B %d, %Y'),
        '',
    ]

    if not prospects:
        lines.append(f"_No new prospects in the last {hours} hours._")
        lines.append("Discovery is still scanning — check back tomorrow.")
        lines.append('')
    else:
        lines.append(f"*{len(prospects)} new prospect(s) found:*")
        lines.append('')
        for i, prospect in enumerate(prospects, 1):
            lines.extend(_prospect_lines(i, prospect))

        candidates = select_for_approaches(prospects)
        if candidates and ai_client.is_configured():
            _generate_approaches(candidates, report)
        elif candidates:
            logger.info("No text-generation provider configured — skipping suggested approaches")

        if report.approaches:
            lines.append('---')
            lines.append('*Suggested Approaches:*')
            lines.append('')
            for name, _script_id, text in report.approaches:
                lines.append(f"*{name}:* {text}")
                lines.append('')

    lines.append('---')
    lines.append(f"Pipeline: {total} total | {qualified} qualified")

    report.text = '\n'.join(lines)
    logger.info(
        "Report generated — %d prospects, %d approaches, %d skipped",
        report.prospects_count, len(report.approaches), len(report.errors),
    )
    return report


def send_report(chat_id=None, hours: int = REPORT_LOOKBACK_HOURS) -> bool:
    """
    Generate the report and hand it to the delivery channel.

    Entry point for the scheduler, the RQ job, and the manual route. Returns
    whether delivery succeeded. Report generation failures alert Slack and
    propagate.
    """
    chat_id = chat_id or TELEGRAM_REPORT_CHAT_ID
    try:
        report = generate_report(hours=hours)
    except Exception as e:
        logger.error("Report generation failed: %s", e, exc_info=True)
        notify_report_failed(e)
        raise

    if not chat_id:
        logger.warning("No report chat configured — report generated but not delivered")
        return False
    return deliver(chat_id, report.text)
