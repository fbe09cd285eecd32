from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ClassResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ClassStats(BaseModel):
    student_count: int
