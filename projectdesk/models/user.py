from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Text
from datetime import datetime
import enum

from projectdesk.core.database import Base
from projectdesk.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """User roles"""
    CLIENT = "client"
    ADMIN = "admin"
    DEVELOPER = "developer"


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    phone_number = Column(String(20), nullable=True)
    hashed_password = Column(String(255), nullable=True)

    role = Column(
        SQLEnum(UserRole, name="userrole", values_callable=lambda e: [m.value for m in e]),
        default=UserRole.CLIENT,
        nullable=False,
    )
    is_active = Column(Boolean, default=True)

    # OAuth fields
    google_id = Column(String(255), unique=True, nullable=True)
    oauth_provider = Column(String(50), nullable=True)  # 'google' or None for email/password
    avatar_url = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"
