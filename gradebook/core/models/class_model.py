"""Fixed cohorts (Kelas 1 to Kelas 6). Model named SchoolClass to avoid Python 'class' keyword."""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from gradebook.db.session import Base


class SchoolClass(Base):
    """Class master. Rows are seed data; teachers, students, subjects and tasks are scoped by it."""

    __tablename__ = "classes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
