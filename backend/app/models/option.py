"""사이트 옵션(key/value) 모델 정의입니다."""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from app.database import Base
from app.utils.helpers import utcnow


class Option(Base):
    __tablename__ = "options"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(191), unique=True, nullable=False)
    value = Column(Text)  # JSON
    autoload = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)
