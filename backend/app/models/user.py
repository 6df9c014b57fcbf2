"""User 도메인의 SQLAlchemy 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base


class User(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    emp_id = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    email = Column(String(150))
    role = Column(String(20), nullable=False)  # administrator/editor/author/subscriber
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())


class UserMeta(Base):
    __tablename__ = "user_meta"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    field_slug = Column(String(100), nullable=False)
    value = Column(Text)  # JSON

    __table_args__ = (
        UniqueConstraint("user_id", "field_slug", name="uq_user_meta_user_field"),
    )
