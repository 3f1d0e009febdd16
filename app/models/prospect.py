"""
Prospect model — one row per discovered lead.
"""
import uuid

from sqlalchemy import Column, Integer, Text, DateTime, CheckConstraint

from app.database import Base, utcnow


def _new_id():
    return str(uuid.uuid4())


def priority_for_score(score):
    """Bucket a 0-100 score into high / medium / low."""
    if score >= 80:
        return 'high'
    if score >= 60:
        return 'medium'
    return 'low'


class Prospect(Base):
    __tablename__ = 'prospects'

    id = Column(Text, primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    source = Column(Text, nullable=False)            # free-text channel label, e.g. "LINE"
    status = Column(Text, nullable=False, default='new')
    score = Column(Integer, nullable=False, default=0)
    signal = Column(Text, nullable=True)             # why the prospect was discovered
    platform_link = Column(Text, nullable=True)
    priority = Column(Text, nullable=False, default='low')
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "status IN ('new', 'contacted', 'qualified', 'converted', 'lost')",
            name='ck_prospect_status',
        ),
        CheckConstraint('score >= 0 AND score <= 100', name='ck_prospect_score_range'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'source': self.source,
            'status': self.status,
            'score': self.score,
            'signal': self.signal,
            'platform_link': self.platform_link,
            'priority': self.priority,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
