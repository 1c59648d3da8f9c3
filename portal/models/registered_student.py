from sqlalchemy import Column, Integer, String, TIMESTAMP, func
from portal.db.base import Base

class RegisteredStudent(Base):
    __tablename__ = "registered_students"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
