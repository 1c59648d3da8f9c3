# /portal/models/enrollment.py
from sqlalchemy import Column, Integer, ForeignKey, TIMESTAMP, func
from portal.db.base import Base

class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False)
    semester_id = Column(Integer, ForeignKey("semesters.id"), nullable=False)
    enrolled_at = Column(TIMESTAMP, server_default=func.now())
