from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String

from taskhub.database import Base


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    PERFORMER = "performer"


class UserEntry(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=UserRole.PERFORMER.value)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
