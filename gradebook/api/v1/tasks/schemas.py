from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class TaskCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    subject_id: Optional[int] = None
    due_date: Optional[date] = None


class TaskUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    due_date: Optional[date] = None


class TaskResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    subject_id: int
    subject_name: Optional[str] = None
    class_id: int
    due_date: Optional[date] = None
    created_at: datetime


class TaskCreatedResponse(BaseModel):
    message: str
    taskId: int


class TaskStudentGrade(BaseModel):
    student_id: int
    student_name: str
    nis: Optional[str] = None
    grade_id: Optional[int] = None
    grade_value: Optional[float] = None
    semester: Optional[int] = None
    academic_year: Optional[str] = None


class TaskGrades(BaseModel):
    task: TaskResponse
    students: List[TaskStudentGrade]
