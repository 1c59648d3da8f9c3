from pydantic import BaseModel


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str


class SessionContext(BaseModel):
    """ 요청 단위 세션 정보 """
    user_id: str
    email: str | None = None
