from sqlalchemy import Column, Integer, String, Boolean, DateTime
from portal.db.base import Base

class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)
    token = Column(String(512), unique=True, nullable=False)
    # 프로필이 없는 사용자도 로그인할 수 있으므로 FK를 두지 않음
    user_id = Column(String(128), index=True, nullable=False)
    is_revoked = Column(Boolean, default=False)
    created_at = Column(DateTime)
    expired_at = Column(DateTime)
