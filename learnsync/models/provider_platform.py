from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.orm import relationship
from datetime import datetime
from learnsync.database.base import Base
import cuid


class ProviderPlatform(Base):
    """
    An external learning system (Canvas, Kolibri) reached through the provider gateway.
    """
    __tablename__ = "provider_platforms"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    name = Column(String(255), unique=True, nullable=False)
    type = Column(String(40), nullable=False)            # 'canvas_cloud' | 'canvas_oss' | 'kolibri'
    description = Column(Text, nullable=True)
    base_url = Column(String(512), nullable=False)
    account_id = Column(String(128), nullable=True)
    access_key = Column(String(512), nullable=False)    # kolibri: 'username:password'
    icon_url = Column(String(512), nullable=True)
    state = Column(String(24), nullable=False, default="enabled")  # enabled | disabled | archived

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    programs = relationship("Program", back_populates="provider_platform")
