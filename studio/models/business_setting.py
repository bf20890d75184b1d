"""Business setting model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, func
from studio.database import Base


class BusinessSetting(Base):
    """Free-form key/value studio setting such as contact details."""
    __tablename__ = "business_settings"

    id = Column(Integer, primary_key=True)
    key = Column(String, unique=True, nullable=False, index=True)
    value = Column(String)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
