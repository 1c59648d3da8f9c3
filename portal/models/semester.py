from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP, func
from sqlalchemy.orm import relationship
from portal.db.base import Base

class Semester(Base):
    __tablename__ = "semesters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # 'Completed' / 'In Progress' / 'Upcoming'
    status = Column(String(20), nullable=False, default="Upcoming")
    batch = Column(String(50), nullable=True)
    city = Column(String(100), nullable=True)
    # 'Onsite' / 'Online'
    mode = Column(String(20), nullable=False, default="Onsite")
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True)
    created_at = Column(TIMESTAMP, server_default=func.now())

    course = relationship("Course", backref="semesters")

    @property
    def course_name(self) -> str:
        return self.course.name if self.course else ""
