"""
Learning model — one row per distinct winning script text, shared across tenants.

Deduplicated by exact `content`. No foreign keys back to scripts or
prospects: only the denormalized `context` survives.
"""
from sqlalchemy import Column, Integer, Text, DateTime, JSON, UniqueConstraint, CheckConstraint

from app.database import Base, utcnow


class Learning(Base):
    __tablename__ = 'learnings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    learning_type = Column(Text, nullable=False, index=True)   # winning_<script_type>
    content = Column(Text, nullable=False)
    context = Column(JSON, nullable=True)                       # {source, signal, feedback}
    success_count = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('content', name='uq_learning_content'),
        CheckConstraint('success_count >= 1', name='ck_learning_success_count'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'learning_type': self.learning_type,
            'content': self.content,
            'context': self.context or {},
            'success_count': self.success_count,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
