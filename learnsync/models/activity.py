from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, UniqueConstraint, Index
from datetime import datetime
from learnsync.database.base import Base
import cuid


class Activity(Base):
    """
    Ingested usage event. Rows are insert-only.

    total_time is the cumulative value the provider reported; time_delta is the
    non-negative increase since the previous report for the same key.
    """
    __tablename__ = "activities"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    user_id = Column(String(25), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    program_id = Column(String(25), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(40), nullable=False)
    total_time = Column(Integer, nullable=False, default=0)  # seconds
    time_delta = Column(Integer, nullable=False, default=0)  # seconds, >= 0
    external_id = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_activity_user_created", "user_id", "created_at"),
    )


class ActivityCounter(Base):
    """
    Last cumulative total observed per (user, program, external id).
    Updated in the same transaction that inserts the Activity row.
    """
    __tablename__ = "activity_counters"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    user_id = Column(String(25), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    program_id = Column(String(25), ForeignKey("programs.id", ondelete="CASCADE"), nullable=False)
    external_id = Column(String(255), nullable=False, default="")  # '' when the provider sends none
    last_total_time = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "program_id", "external_id", name="uq_activity_counter_key"),
    )
