from pydantic import BaseModel
from typing import Literal, Optional


class SemesterRow(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    status: Literal["Completed", "In Progress", "Upcoming"]
    batch: Optional[str] = None
    city: Optional[str] = None
    mode: Literal["Onsite", "Online"]
    course_id: Optional[int] = None
    course_name: str = ""

    class Config:
        from_attributes = True


class EnrollmentRow(BaseModel):
    id: int
    student_id: int
    semester_id: int

    class Config:
        from_attributes = True
