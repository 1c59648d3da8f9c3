# /portal/models/student.py
from sqlalchemy import Column, Integer, String, Date
from portal.db.base import Base

class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    # Firebase uid, 프로필은 사용자당 최대 1개
    user_id = Column(String(128), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    father_name = Column(String(255), nullable=True)
    student_id = Column(String(64), nullable=True, comment="등록 번호")
    roll_no = Column("rollNo", String(64), nullable=True)
    city = Column(String(100), nullable=True)
    gender = Column(String(20), nullable=True)
    email = Column(String(255), index=True, nullable=True)
    currently = Column(String(50), nullable=True, comment="재학 상태 (Onsite/Online 등)")
    avatar = Column(String(512), nullable=True, comment="avatars 버킷 내 경로")
    course = Column(String(255), nullable=True)
    batch = Column(String(50), nullable=True)
    admit_date = Column(Date, nullable=True)
