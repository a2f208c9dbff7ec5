from sqlalchemy import Column, String, ForeignKey, DateTime, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from learnsync.database.base import Base
import cuid


class ProviderUserMapping(Base):
    """
    Durable association between a provider's external user and an internal user.
    At most one internal user per (provider, external user id) and one login per
    (user, provider).
    """
    __tablename__ = "provider_user_mappings"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    user_id = Column(String(25), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider_platform_id = Column(String(25), ForeignKey("provider_platforms.id", ondelete="CASCADE"), nullable=False)
    external_user_id = Column(String(255), nullable=False)
    external_username = Column(String(255), nullable=True)
    external_login_id = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="provider_mappings")

    __table_args__ = (
        UniqueConstraint("provider_platform_id", "external_user_id", name="uq_mapping_provider_external_user"),
        UniqueConstraint("user_id", "provider_platform_id", name="uq_mapping_user_provider"),
        Index("ix_mapping_provider", "provider_platform_id"),
    )
