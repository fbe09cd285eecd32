from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from gradebook.db.session import Base


class Student(Base):
    """Student of one class. Name is unique within the class; NIS (optional) is unique globally."""

    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    nis = Column(String(50), nullable=True, unique=True)
    class_id = Column(Integer, ForeignKey("classes.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
