from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from common.ids import StudentId, UserId, new_id
from shared_db.db import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[UserId] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)


class Student(Base):
    """Student profile; notifications go to the owning ``User``."""

    __tablename__ = "students"

    id: Mapped[StudentId] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[UserId] = mapped_column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
