from datetime import datetime
from pydantic import BaseModel
from typing import Optional


class ResultRow(BaseModel):
    id: int
    student_id: int
    semester_id: Optional[int] = None
    semester: Optional[str] = None
    title: Optional[str] = None
    subjects: Optional[str] = None
    marks: Optional[int] = None
    grade: Optional[str] = None
    percentile: Optional[float] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ResultUpdate(BaseModel):
    marks: Optional[int] = None
    grade: Optional[str] = None
    percentile: Optional[float] = None
    status: Optional[str] = None
    subjects: Optional[str] = None
