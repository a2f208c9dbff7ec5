from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from learnsync.database.base import Base
import cuid


class User(Base):
    """Internal user; imported users are bound to providers through ProviderUserMapping."""

    __tablename__ = "users"

    id = Column(String(25), primary_key=True, index=True, default=lambda: cuid.cuid())
    username = Column(String(255), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name_first = Column(String(255), nullable=True)
    name_last = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="student")  # admin | student
    is_active = Column(Boolean, default=True)
    is_deleted = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    provider_mappings = relationship("ProviderUserMapping", back_populates="user", cascade="all, delete-orphan")
