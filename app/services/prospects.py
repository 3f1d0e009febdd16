"""
Prospect store — persistence helpers for discovered leads.

Unlike the best-effort writers elsewhere, store failures here propagate:
callers (the report generator in particular) must know when the store is down.
"""
import logging
from datetime import timedelta

from sqlalchemy import func

from app.config import PROSPECT_STATUSES, QUALIFIED_SCORE
from app.database import get_session, utcnow
from app.errors import NotFound
from app.models.prospect import Prospect, priority_for_score

logger = logging.getLogger('services.prospects')


def create_prospect(name, source, score=0, signal=None, platform_link=None):
    """INSERT a new prospect with status 'new'."""
    if not name or not source:
        raise ValueError("name and source are required")
    score = int(score or 0)
    if not 0 <= score <= 100:
        raise ValueError(f"score must be between 0 and 100, got {score}")

    session = get_session()
    try:
        prospect = Prospect(
            name=name,
            source=source,
            score=score,
            signal=signal or None,
            platform_link=platform_link or None,
            priority=priority_for_score(score),
        )
        session.add(prospect)
        session.commit()
        logger.info("Prospect %s created (source=%s, score=%d)", prospect.id[:8], source, score)
        return prospect
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def find_by_id(prospect_id):
    """Return the Prospect or raise NotFound."""
    session = get_session()
    try:
        prospect = session.get(Prospect, prospect_id)
        if prospect is None:
            raise NotFound('prospect', prospect_id)
        return prospect
    finally:
        session.close()


def find_by_name(fragment):
    """Best match for a case-insensitive name fragment — highest score wins."""
    session = get_session()
    try:
        prospect = session.query(Prospect).filter(
            Prospect.name.ilike(f'%{fragment}%'),
        ).order_by(Prospect.score.desc(), Prospect.created_at.desc()).first()
        if prospect is None:
            raise NotFound('prospect', fragment)
        return prospect
    finally:
        session.close()


def list_since(since, min_score=None):
    """Prospects created at or after `since`, highest score first."""
    session = get_session()
    try:
        query = session.query(Prospect).filter(Prospect.created_at >= since)
        if min_score is not None:
            query = query.filter(Prospect.score >= min_score)
        return query.order_by(Prospect.score.desc(), Prospect.created_at.desc()).all()
    finally:
        session.close()


def list_prospects(status=None, min_score=None, since=None, limit=50):
    """Filtered listing for the API, highest score first."""
    session = get_session()
    try:
        query = session.query(Prospect)
        if status:
            query = query.filter(Prospect.status == status)
        if min_score is not None:
            query = query.filter(Prospect.score >= min_score)
        if since is not None:
            query = query.filter(Prospect.created_at >= since)
        return query.order_by(Prospect.score.desc(), Prospect.created_at.desc()).limit(limit).all()
    finally:
        session.close()


def priority_prospects(hours=24, now=None):
    """Qualified prospects (score >= 70) found in the last N hours."""
    since = (now or utcnow()) - timedelta(hours=hours)
    return list_since(since, min_score=QUALIFIED_SCORE)


def update_status(prospect_id, status):
    """Move a prospect to another funnel status. Any transition is allowed."""
    if status not in PROSPECT_STATUSES:
        raise ValueError(f"Unknown status '{status}'. Available: {PROSPECT_STATUSES}")

    session = get_session()
    try:
        prospect = session.get(Prospect, prospect_id)
        if prospect is None:
            raise NotFound('prospect', prospect_id)
        previous = prospect.status
        prospect.status = status
        session.commit()
        logger.info("Prospect %s status %s → %s", prospect_id[:8], previous, status)
        return prospect
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def count_prospects(min_score=None, since=None):
    session = get_session()
    try:
        query = session.query(func.count(Prospect.id))
        if min_score is not None:
            query = query.filter(Prospect.score >= min_score)
        if since is not None:
            query = query.filter(Prospect.created_at >= since)
        return query.scalar() or 0
    finally:
        session.close()


def pipeline_stats(now=None):
    """Funnel overview: totals, this week's intake, average score, per-status counts."""
    week_ago = (now or utcnow()) - timedelta(days=7)
    session = get_session()
    try:
        total = session.query(func.count(Prospect.id)).scalar() or 0
        this_week = session.query(func.count(Prospect.id)).filter(
            Prospect.created_at >= week_ago,
        ).scalar() or 0
        avg_score = session.query(func.avg(Prospect.score)).scalar()
        rows = session.query(
            Prospect.status,
            func.count(Prospect.id).label('count'),
        ).group_by(Prospect.status).all()

        return {
            'total': total,
            'this_week': this_week,
            'qualified': session.query(func.count(Prospect.id)).filter(
                Prospect.score >= QUALIFIED_SCORE,
            ).scalar() or 0,
            'avg_score': round(float(avg_score or 0)),
            'by_status': {row.status: row.count for row in rows},
        }
    finally:
        session.close()
