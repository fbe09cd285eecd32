from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from gradebook.db.session import Base


class User(Base):
    """Teacher account. Several teachers may share one class."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    name = Column(String(255), nullable=False)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
