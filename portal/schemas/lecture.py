from datetime import datetime
from pydantic import BaseModel
from typing import Optional


class LectureRow(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    course_name: Optional[str] = None
    video_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
