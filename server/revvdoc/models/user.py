"""User model."""

import enum

from revvdoc.models.base import Base, TimestampMixin
from sqlalchemy import Boolean, Column
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import String


class UserRole(str, enum.Enum):
    """User role enum."""

    CUSTOMER = "customer"
    TECHNICIAN = "technician"
    ADMIN = "admin"


class User(Base, TimestampMixin):
    """User profile keyed by the identity provider's subject id."""

    __tablename__ = "users"

    id = Column(String(128), primary_key=True)
    role = Column(SQLEnum(UserRole), default=UserRole.CUSTOMER, nullable=False)
    name = Column(String(200))
    email = Column(String(255), index=True)
    phone = Column(String(20))

    # Technician fields
    is_available = Column(Boolean, default=False)

    def __repr__(self):
        return f"<User(id='{self.id}', role='{self.role}')>"
