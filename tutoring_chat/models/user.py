"""SQLAlchemy ORM model for marketplace users (students and tutors)."""
from __future__ import annotations

from enum import StrEnum

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from tutoring_chat.database import Base


class UserRole(StrEnum):
    STUDENT = "student"
    TUTOR = "tutor"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(150), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    role = Column(String(32), nullable=False, server_default=UserRole.STUDENT.value, default=UserRole.STUDENT.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


__all__ = ["User", "UserRole"]
