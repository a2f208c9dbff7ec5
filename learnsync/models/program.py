from sqlalchemy import Column, String, ForeignKey, DateTime, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from learnsync.database.base import Base
import cuid


class Program(Base):
    """
    Catalog entry for a course/program offered by a provider platform.
    external_id binds the row to its provider and never changes.
    """
    __tablename__ = "programs"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    provider_platform_id = Column(String(25), ForeignKey("provider_platforms.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    alt_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    external_id = Column(String(255), nullable=False)
    thumbnail_url = Column(String(512), nullable=True)
    external_url = Column(String(512), nullable=True)
    type = Column(String(40), nullable=True)            # fixed_enrollment | open_enrollment | open_content
    outcome_types = Column(String(255), nullable=True)  # comma-joined OutcomeType values
    total_progress_milestones = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    provider_platform = relationship("ProviderPlatform", back_populates="programs")

    __table_args__ = (
        UniqueConstraint("provider_platform_id", "external_id", name="uq_program_provider_external"),
    )
