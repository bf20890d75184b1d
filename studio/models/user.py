"""User model definitions."""

from sqlalchemy import Column, DateTime, Integer, String, func
from studio.database import Base


class User(Base):
    """Represents a studio customer or administrator."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String)
    first_name = Column(String)
    last_name = Column(String)
    phone = Column(String)
    role = Column(String, default="customer")  # customer/admin
    created_at = Column(DateTime, server_default=func.now())

    @property
    def is_admin(self) -> bool:
        return (self.role or "").strip().lower() == "admin"
