import jwt
import uuid
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from fastapi import HTTPException, status

from portal.models.token import RefreshToken
from portal.core.config import settings

def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def create_refresh_token_with_rotation(db: Session, uid: str, email: Optional[str] = None) -> str:
    # jti: 같은 초에 발급돼도 토큰 문자열이 겹치지 않도록
    to_encode = {"sub": uid, "email": email, "jti": uuid.uuid4().hex}
    expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire})
    refresh_token = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    db_token = RefreshToken(
        token=refresh_token,
        user_id=uid,
        created_at=datetime.utcnow(),
        expired_at=expire
    )
    db.add(db_token)
    db.commit()
    db.refresh(db_token)

    return refresh_token

def issue_token_pair(db: Session, uid: str, email: Optional[str]) -> tuple[str, str]:
    access_token = create_access_token({"sub": uid, "email": email})
    refresh_token = create_refresh_token_with_rotation(db, uid, email)
    return access_token, refresh_token

def rotate_refresh_token(db: Session, refresh_token: str) -> tuple[str, str]:
    try:
        payload = jwt.decode(refresh_token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        uid = payload.get("sub")
        if not uid:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

        db_token = db.query(RefreshToken).filter_by(token=refresh_token).first()
        if not db_token or db_token.is_revoked:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token is invalid or already used")

        db_token.is_revoked = True
        db.commit()

        return issue_token_pair(db, uid, payload.get("email"))

    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

def revoke_user_refresh_tokens(db: Session, uid: str) -> int:
    count = (
        db.query(RefreshToken)
        .filter(RefreshToken.user_id == uid, RefreshToken.is_revoked.is_(False))
        .update({"is_revoked": True}, synchronize_session=False)
    )
    db.commit()
    return count
