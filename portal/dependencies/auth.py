from typing import Optional

from fastapi import Depends, Request
from jose import jwt, JWTError

from portal.core.config import settings
from portal.core.exceptions import NotAuthenticated
from portal.schemas.auth import SessionContext

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"


def get_session_context(request: Request) -> Optional[SessionContext]:
    """
    access_token 쿠키를 검증해 요청 단위 세션을 만듭니다. 없거나 유효하지 않으면 None.
    FastAPI가 요청마다 한 번만 해석하므로 페이지와 레이아웃이 같은 세션을 공유합니다.
    """
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    uid: str = payload.get("sub")
    if uid is None:
        return None
    session = SessionContext(user_id=uid, email=payload.get("email"))
    request.state.session = session
    return session


def require_session(
        request: Request,
        session: Optional[SessionContext] = Depends(get_session_context)
) -> SessionContext:
    if session is None:
        raise NotAuthenticated(redirected_from=request.url.path)
    return session
