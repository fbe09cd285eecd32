from datetime import date, datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from gradebook.core.models.grade import GRADE_TYPE_FINAL, GRADE_TYPE_TASK


class GradeSubmission(BaseModel):
    """One parsed grade submission. Built by service.parse_submission, never straight from the body."""

    student_id: int = Field(..., ge=1)
    subject_id: int = Field(..., ge=1)
    task_id: Optional[int] = Field(None, ge=1)
    grade_value: float = Field(..., allow_inf_nan=False)
    grade_type: Optional[Literal["task", "final"]] = None
    semester: int = Field(..., ge=1)
    academic_year: str = Field(..., pattern=r"^\d{4}/\d{4}$")

    @field_validator("student_id", "subject_id", "task_id", "grade_value", "semester", mode="before")
    @classmethod
    def reject_bool(cls, v: Any) -> Any:
        # JSON true/false would otherwise coerce to 1/0
        if isinstance(v, bool):
            raise ValueError("must be a number, not a boolean")
        return v

    @property
    def resolved_grade_type(self) -> str:
        return self.grade_type or (GRADE_TYPE_TASK if self.task_id is not None else GRADE_TYPE_FINAL)


class GradeBulkRequest(BaseModel):
    # Items stay raw so one malformed item is reported per index instead of failing the request
    grades: Any = None


class GradeWriteResponse(BaseModel):
    message: str
    gradeId: int


class GradeBulkFailure(BaseModel):
    index: int = Field(..., description="1-based position in the submitted list")
    error: str


class GradeBulkResponse(BaseModel):
    message: str
    processed: int


class GradeBulkErrorResponse(BaseModel):
    error: str
    details: List[GradeBulkFailure]
    processed: int


class GradeResponse(BaseModel):
    id: int
    student_id: int
    subject_id: int
    task_id: Optional[int] = None
    grade_value: float
    grade_type: str
    semester: int
    academic_year: str
    created_at: datetime
    updated_at: datetime
    student_name: str
    subject_name: str
    task_name: Optional[str] = None


class StudentRef(BaseModel):
    id: int
    name: str
    nis: Optional[str] = None
    class_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class StudentGradeSummaryItem(BaseModel):
    subject_name: str
    semester: int
    academic_year: str
    grade_value: float
    grade_type: str


class StudentGradeSummary(BaseModel):
    student: StudentRef
    grades: List[StudentGradeSummaryItem]


class SubjectTaskItem(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    due_date: Optional[date] = None


class SubjectTasks(BaseModel):
    subject_id: int
    subject_name: str
    tasks: List[SubjectTaskItem]
