from sqlalchemy import Column, String, ForeignKey, DateTime, Boolean, UniqueConstraint, Index
from datetime import datetime
from learnsync.database.base import Base
import cuid


class Milestone(Base):
    """
    Discrete progress event (submission, grade, enrollment) of one user in one program.
    """
    __tablename__ = "milestones"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    external_id = Column(String(255), nullable=False)
    type = Column(String(40), nullable=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    user_id = Column(String(25), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    program_id = Column(String(25), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("program_id", "user_id", "external_id", name="uq_milestone_program_user_external"),
        Index("ix_milestone_user_created", "user_id", "created_at"),
    )
