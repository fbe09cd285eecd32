from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SubjectResponse(BaseModel):
    id: int
    name: str
    class_id: Optional[int] = None
    is_custom: bool
    created_at: datetime

    class Config:
        from_attributes = True


class SubjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class SubjectCreatedResponse(BaseModel):
    message: str
    subjectId: int


class SeniOption(BaseModel):
    id: str
    name: str


class SeniUpdateRequest(BaseModel):
    seni_type: Optional[str] = Field(None, description="One of the ids from /seni-options")


class SubjectCleanupResponse(BaseModel):
    message: str
    removed: int
