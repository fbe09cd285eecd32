from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class StudentCreate(BaseModel):
    # Checked in the service so a blank name gets the same 400 as other input errors
    name: Optional[str] = Field(None, max_length=255)
    nis: Optional[str] = Field(None, max_length=50, description="Nomor Induk Siswa, digits only")


class StudentUpdate(StudentCreate):
    pass


class StudentResponse(BaseModel):
    id: int
    name: str
    nis: Optional[str] = None
    class_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class StudentCreatedResponse(BaseModel):
    message: str
    studentId: int


class StudentGradeItem(BaseModel):
    id: int
    subject_id: int
    subject_name: str
    task_id: Optional[int] = None
    grade_value: float
    grade_type: str
    semester: int
    academic_year: str
    created_at: datetime
    updated_at: datetime


class StudentDetail(BaseModel):
    student: StudentResponse
    grades: List[StudentGradeItem]
