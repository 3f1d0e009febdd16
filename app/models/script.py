"""
Script model — one AI-generated outreach text and its feedback outcome.

The feedback / feedback_at pair is only ever written through resolve(), and
read through the `state` property, which returns one of two tagged states:

    Pending()                — no feedback yet
    Resolved(value, at)      — feedback recorded at `at`

A DB check constraint backs the same rule: feedback_at is set iff feedback is.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from sqlalchemy import Column, Text, DateTime, ForeignKey, CheckConstraint

from app.config import DEFAULT_TENANT_ID
from app.database import Base, utcnow


@dataclass(frozen=True)
class Pending:
    """Script delivered, outcome not yet known."""
    status = 'pending'


@dataclass(frozen=True)
class Resolved:
    """Script outcome recorded."""
    value: str
    at: datetime
    status = 'resolved'


FeedbackState = Union[Pending, Resolved]


def _new_id():
    return str(uuid.uuid4())


class Script(Base):
    __tablename__ = 'scripts'

    id = Column(Text, primary_key=True, default=_new_id)
    # Nulled when the prospect is deleted; the script row stays
    prospect_id = Column(Text, ForeignKey('prospects.id', ondelete='SET NULL'), nullable=True, index=True)
    tenant_id = Column(Text, nullable=False, default=DEFAULT_TENANT_ID, index=True)
    text = Column(Text, nullable=False)
    script_type = Column(Text, nullable=False, default='approach')
    feedback = Column(Text, nullable=True, index=True)
    feedback_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        CheckConstraint(
            "script_type IN ('approach', 'follow_up', 'objection')",
            name='ck_script_type',
        ),
        CheckConstraint(
            "feedback IS NULL OR feedback IN ('no_response', 'got_reply', 'converted')",
            name='ck_script_feedback_value',
        ),
        CheckConstraint(
            '(feedback IS NULL) = (feedback_at IS NULL)',
            name='ck_script_feedback_pair',
        ),
    )

    @property
    def state(self) -> FeedbackState:
        if self.feedback is None:
            return Pending()
        return Resolved(value=self.feedback, at=self.feedback_at)

    def resolve(self, value: str, at: datetime = None) -> Resolved:
        """Record feedback. Overwrites any earlier outcome."""
        self.feedback = value
        self.feedback_at = at or utcnow()
        return self.state

    def to_dict(self):
        state = self.state
        return {
            'id': self.id,
            'prospect_id': self.prospect_id,
            'tenant_id': self.tenant_id,
            'text': self.text,
            'script_type': self.script_type,
            'state': state.status,
            'feedback': state.value if isinstance(state, Resolved) else None,
            'feedback_at': state.at.isoformat() if isinstance(state, Resolved) and state.at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
