"""
Hive — cross-tenant aggregation of winning scripts, plus the read-side stats
the dashboard and bot show on top of it.

record_win() is the only writer. It is a single INSERT ... ON CONFLICT (content)
DO UPDATE statement, so concurrent wins for the same text each add exactly one
to success_count. The first insert's learning_type and context are kept; only
the counter moves. Content is matched byte-for-byte (no trimming, no casefold).
"""
import logging
from datetime import timedelta

from sqlalchemy import func, case
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from app.config import LEADERBOARD_SIZE, POSITIVE_FEEDBACK
from app.database import get_session, utcnow
from app.models.learning import Learning
from app.models.prospect import Prospect
from app.models.script import Script

logger = logging.getLogger('services.hive')

_DIALECT_INSERTS = {
    'postgresql': pg_insert,
    'sqlite': sqlite_insert,
}


def _upsert_statement(dialect_name, content, learning_type, context):
    insert = _DIALECT_INSERTS.get(dialect_name)
    if insert is None:
        raise RuntimeError(f"No atomic upsert available for dialect '{dialect_name}'")
    stmt = insert(Learning).values(
        learning_type=learning_type,
        content=content,
        context=context,
        success_count=1,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[Learning.content],
        set_={'success_count': Learning.success_count + 1},
    )
    return stmt.returning(Learning.id, Learning.success_count)


def record_win(content, learning_type, context=None):
    """
    Fold one winning script into the hive.

    Returns (learning, created) where `created` is True when this call
    inserted the row (success_count == 1).
    """
    session = get_session()
    try:
        stmt = _upsert_statement(session.get_bind().dialect.name, content, learning_type, context)
        row = session.execute(stmt).one()
        session.commit()

        learning = session.get(Learning, row.id)
        created = row.success_count == 1
        logger.info(
            "Hive learning %s %s (%s, success_count=%d)",
            row.id, 'created' if created else 'incremented', learning_type, row.success_count,
            extra={'learning_id': row.id},
        )
        return learning, created
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def list_learnings(learning_type=None, limit=50):
    """Learnings by success_count desc; ties keep creation order (oldest first)."""
    session = get_session()
    try:
        query = session.query(Learning)
        if learning_type:
            query = query.filter(Learning.learning_type == learning_type)
        return query.order_by(
            Learning.success_count.desc(),
            Learning.created_at.asc(),
            Learning.id.asc(),
        ).limit(limit).all()
    finally:
        session.close()


def leaderboard():
    """Top learnings across all tenants. Recomputed on every call."""
    return list_learnings(limit=LEADERBOARD_SIZE)


# ── Feedback stats ───────────────────────────────────────────────────────────

def _rate(part, whole):
    return round(100.0 * part / whole, 1) if whole else 0.0


def feedback_stats():
    """Script totals, how many got feedback, conversion rate, breakdown by outcome."""
    session = get_session()
    try:
        total = session.query(func.count(Script.id)).scalar() or 0
        rows = session.query(
            Script.feedback,
            func.count(Script.id).label('count'),
        ).filter(Script.feedback.isnot(None)).group_by(Script.feedback).all()

        by_feedback = {row.feedback: row.count for row in rows}
        with_feedback = sum(by_feedback.values())
        return {
            'total_scripts': total,
            'with_feedback': with_feedback,
            'conversion_rate': _rate(by_feedback.get('converted', 0), with_feedback),
            'by_feedback': by_feedback,
        }
    finally:
        session.close()


def recent_feedback(limit=20, include_pending=False):
    """Latest scripts with their prospect's name and source."""
    session = get_session()
    try:
        query = session.query(Script, Prospect.name, Prospect.source).outerjoin(
            Prospect, Script.prospect_id == Prospect.id,
        )
        if include_pending:
            query = query.order_by(Script.created_at.desc())
        else:
            query = query.filter(Script.feedback.isnot(None)).order_by(Script.feedback_at.desc())

        results = []
        for script, name, source in query.limit(limit).all():
            entry = script.to_dict()
            entry['prospect_name'] = name
            entry['source'] = source
            results.append(entry)
        return results
    finally:
        session.close()


# ── Performance breakdowns ───────────────────────────────────────────────────

def _outcome_counts():
    """Reusable aggregate columns over Script.feedback."""
    return (
        func.count(case((Script.feedback == 'got_reply', 1))).label('replies'),
        func.count(case((Script.feedback == 'converted', 1))).label('conversions'),
        func.count(Script.feedback).label('with_feedback'),
    )


def source_performance():
    """Per discovery source: prospects, scripts, replies, conversions, success rate."""
    session = get_session()
    try:
        replies, conversions, with_feedback = _outcome_counts()
        rows = session.query(
            Prospect.source,
            func.count(func.distinct(Prospect.id)).label('prospects_found'),
            func.count(Script.id).label('scripts_generated'),
            replies, conversions, with_feedback,
            func.avg(Prospect.score).label('avg_score'),
        ).outerjoin(
            Script, Script.prospect_id == Prospect.id,
        ).group_by(Prospect.source).all()

        sources = [{
            'source': row.source,
            'prospects_found': row.prospects_found,
            'scripts_generated': row.scripts_generated,
            'replies': row.replies,
            'conversions': row.conversions,
            'avg_score': round(float(row.avg_score or 0), 1),
            'success_rate': _rate(row.replies + row.conversions, row.with_feedback),
        } for row in rows]
        sources.sort(key=lambda s: (s['conversions'], s['replies']), reverse=True)
        return sources
    finally:
        session.close()


def tenant_stats():
    """Per tenant script outcomes — the multi-tenant leaderboard."""
    session = get_session()
    try:
        replies, conversions, with_feedback = _outcome_counts()
        rows = session.query(
            Script.tenant_id,
            func.count(Script.id).label('total_scripts'),
            replies, conversions, with_feedback,
        ).group_by(Script.tenant_id).all()

        tenants = [{
            'tenant_id': row.tenant_id,
            'total_scripts': row.total_scripts,
            'replies': row.replies,
            'conversions': row.conversions,
            'success_rate': _rate(row.replies + row.conversions, row.with_feedback),
        } for row in rows]
        tenants.sort(key=lambda t: (t['conversions'], t['replies']), reverse=True)
        return tenants
    finally:
        session.close()


# ── Trends and signals ───────────────────────────────────────────────────────

def trends(days=30, now=None):
    """
    Day-by-day activity over the last `days` days.

    script_trends: scripts created per day and how they resolved.
    hive_trends: learnings first seen per day and their current success totals.
    summary: hive-wide totals plus learnings created in the last 7 days.
    """
    now = now or utcnow()
    since = now - timedelta(days=days)
    session = get_session()
    try:
        script_day = func.date(Script.created_at)
        replies, conversions, with_feedback = _outcome_counts()
        script_rows = session.query(
            script_day.label('date'),
            func.count(Script.id).label('scripts_created'),
            with_feedback, conversions, replies,
        ).filter(
            Script.created_at >= since,
        ).group_by(script_day).order_by(script_day).all()

        learning_day = func.date(Learning.created_at)
        hive_rows = session.query(
            learning_day.label('date'),
            func.count(Learning.id).label('new_learnings'),
            func.sum(Learning.success_count).label('total_successes'),
        ).filter(
            Learning.created_at >= since,
        ).group_by(learning_day).order_by(learning_day).all()

        total_learnings, total_successes = session.query(
            func.count(Learning.id),
            func.sum(Learning.success_count),
        ).one()
        this_week = session.query(func.count(Learning.id)).filter(
            Learning.created_at >= now - timedelta(days=7),
        ).scalar() or 0

        return {
            'script_trends': [{
                'date': str(row.date),
                'scripts_created': row.scripts_created,
                'with_feedback': row.with_feedback,
                'converted': row.conversions,
                'got_reply': row.replies,
            } for row in script_rows],
            'hive_trends': [{
                'date': str(row.date),
                'new_learnings': row.new_learnings,
                'total_successes': int(row.total_successes or 0),
            } for row in hive_rows],
            'summary': {
                'total_learnings': total_learnings or 0,
                'total_successes': int(total_successes or 0),
                'this_week': this_week,
            },
        }
    finally:
        session.close()


def top_signals(limit=10):
    """
    Prospect signals whose scripts drew at least one reply or conversion,
    with the source they came from. Most conversions first.
    """
    session = get_session()
    try:
        replies, conversions, _ = _outcome_counts()
        positive = func.count(case((Script.feedback.in_(sorted(POSITIVE_FEEDBACK)), 1)))
        rows = session.query(
            Prospect.signal,
            Prospect.source,
            func.count(Script.id).label('count'),
            replies, conversions,
        ).join(
            Script, Script.prospect_id == Prospect.id,
        ).filter(
            Prospect.signal.isnot(None),
            Prospect.signal != '',
        ).group_by(
            Prospect.signal, Prospect.source,
        ).having(positive > 0).order_by(
            conversions.desc(), func.count(Script.id).desc(),
        ).limit(limit).all()

        return [{
            'signal': row.signal,
            'source': row.source,
            'count': row.count,
            'replies': row.replies,
            'conversions': row.conversions,
        } for row in rows]
    finally:
        session.close()
