"""Service catalog model definitions."""

from sqlalchemy import Boolean, Column, DateTime, Integer, Numeric, String, func
from studio.database import Base


class Service(Base):
    """A bookable treatment. Its duration sets the span a booking occupies."""
    __tablename__ = "services"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(String)
    duration = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    category = Column(String)
    image_url = Column(String)
    benefits = Column(String)
    is_active = Column(Boolean, default=True)
    is_displayed = Column(Boolean, default=True)
    display_order = Column(Integer, default=0)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
