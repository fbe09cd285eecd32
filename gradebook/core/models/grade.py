"""Numeric grades (nilai). At most one row per natural key."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint

from gradebook.db.session import Base

GRADE_TYPE_TASK = "task"
GRADE_TYPE_FINAL = "final"

# task_key mirrors task_id with 0 for "no task": NULLs never collide in a unique constraint
NO_TASK_KEY = 0

GRADE_NATURAL_KEY = (
    "student_id",
    "subject_id",
    "task_key",
    "semester",
    "academic_year",
    "grade_type",
)


class Grade(Base):
    __tablename__ = "grades"
    __table_args__ = (
        UniqueConstraint(*GRADE_NATURAL_KEY, name="uq_grade_natural_key"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=True, index=True)
    task_key = Column(Integer, nullable=False, default=NO_TASK_KEY)
    grade_value = Column(Float, nullable=False)
    grade_type = Column(String(10), nullable=False, default=GRADE_TYPE_TASK)  # task | final
    semester = Column(Integer, nullable=False)
    academic_year = Column(String(9), nullable=False)  # e.g. "2024/2025"
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
