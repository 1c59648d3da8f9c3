# /portal/schemas/student.py
from datetime import date
from pydantic import BaseModel
from typing import Optional


class StudentRow(BaseModel):
    id: int
    user_id: str
    full_name: Optional[str] = None
    father_name: Optional[str] = None
    student_id: Optional[str] = None
    roll_no: Optional[str] = None
    city: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    currently: Optional[str] = None
    avatar: Optional[str] = None
    course: Optional[str] = None
    batch: Optional[str] = None
    admit_date: Optional[date] = None

    class Config:
        from_attributes = True


class StudentProfileUpdate(BaseModel):
    """ 프로필 저장 폼. 전달되지 않은 필드는 갱신하지 않음 """
    full_name: Optional[str] = None
    father_name: Optional[str] = None
    student_id: Optional[str] = None
    roll_no: Optional[str] = None
    city: Optional[str] = None
    gender: Optional[str] = None
    email: Optional[str] = None
    currently: Optional[str] = None
    avatar: Optional[str] = None
    course: Optional[str] = None
    batch: Optional[str] = None


class StudentProfileView(BaseModel):
    full_name: str = ""
    father_name: str = ""
    student_id: str = ""
    roll_no: str = ""
    city: str = ""
    gender: str = "Male"
    email: str = ""
    currently: str = "Onsite"
    avatar: str = ""
    course: str = ""
    batch: str = ""

    @classmethod
    def from_row(cls, row: StudentRow) -> "StudentProfileView":
        # None 값은 빈 문자열로 표시
        return cls(**{name: getattr(row, name) or "" for name in cls.model_fields})
