from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, func
from portal.db.base import Base

class Lecture(Base):
    __tablename__ = "lectures"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    course_name = Column(String(255), nullable=True)
    video_url = Column(String(1023), nullable=True)  # 외부 영상 링크
    created_at = Column(TIMESTAMP, server_default=func.now())
