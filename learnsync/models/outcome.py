from sqlalchemy import Column, String, ForeignKey, DateTime, Index
from datetime import datetime
from learnsync.database.base import Base
import cuid


class Outcome(Base):
    """
    Terminal completion record (certificate, grade, pathway completion, college credit).
    A program with an outcome is no longer a current enrollment for that user.
    """
    __tablename__ = "outcomes"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    user_id = Column(String(25), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    program_id = Column(String(25), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(40), nullable=False)
    value = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("ix_outcome_user_program", "user_id", "program_id"),
    )
