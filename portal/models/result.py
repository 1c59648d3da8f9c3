from sqlalchemy import Column, Integer, String, Float, ForeignKey, TIMESTAMP, func
from portal.db.base import Base

class Result(Base):
    __tablename__ = "results"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    semester_id = Column(Integer, ForeignKey("semesters.id"), nullable=True)
    semester = Column(String(100), nullable=True)  # 표시용 학기명
    title = Column(String(255), nullable=True)
    subjects = Column(String(1023), nullable=True)
    marks = Column(Integer, nullable=True)
    grade = Column(String(10), nullable=True)
    percentile = Column(Float, nullable=True)
    status = Column(String(20), nullable=True)  # 'Passed' / 'Failed'
    created_at = Column(TIMESTAMP, server_default=func.now())
