import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from portal.api.shell import render_public
from portal.core.config import settings
from portal.core.exceptions import IdentityError
from portal.dependencies.auth import ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, get_session_context
from portal.dependencies.db import get_db
from portal.schemas.auth import SessionContext, TokenResponse
from portal.services.auth_service import (
    USER_EXISTS_MESSAGE, authenticate_with_password, register_student, request_password_reset, sign_out
)
from portal.services.token_service import rotate_refresh_token

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_LOGIN_TARGET = "/courses"


def safe_redirect_target(value: Optional[str]) -> str:
    # 같은 사이트 안의 경로만 허용
    if value and value.startswith("/") and not value.startswith("//"):
        return value
    return DEFAULT_LOGIN_TARGET


def set_session_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE, access_token,
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True, secure=settings.COOKIE_SECURE, samesite="lax",
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE, refresh_token,
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600,
        httponly=True, secure=settings.COOKIE_SECURE, samesite="lax",
    )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    response.delete_cookie(REFRESH_TOKEN_COOKIE)


@router.get("/login", summary="로그인 화면")
def login_page(
        request: Request,
        redirectedFrom: Optional[str] = None,
        message: Optional[str] = None,
        session: Optional[SessionContext] = Depends(get_session_context)
):
    if session is not None:
        return RedirectResponse(DEFAULT_LOGIN_TARGET, status_code=status.HTTP_303_SEE_OTHER)
    return render_public(request, "login.html", redirected_from=redirectedFrom, notice=message)


@router.post("/login", summary="이메일/비밀번호 로그인")
def login(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
        redirectedFrom: Optional[str] = Form(None),
        db: Session = Depends(get_db)
):
    try:
        access_token, refresh_token = authenticate_with_password(db, email.strip(), password)
    except IdentityError as e:
        logger.info(f"로그인 실패 - email={email}: {e.message}")
        return render_public(
            request, "login.html", status_code=status.HTTP_400_BAD_REQUEST,
            redirected_from=redirectedFrom, email=email, error=e.message,
        )

    response = RedirectResponse(safe_redirect_target(redirectedFrom), status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookies(response, access_token, refresh_token)
    return response


@router.get("/register", summary="회원가입 화면")
def register_page(request: Request):
    return render_public(request, "register.html")


@router.post("/register", summary="회원가입")
def register(
        request: Request,
        email: str = Form(""),
        password: str = Form(""),
        confirm_password: str = Form(""),
        db: Session = Depends(get_db)
):
    try:
        message = register_student(db, email.strip(), password, confirm_password)
    except IdentityError as e:
        if e.code == "USER_EXISTS":
            query = urlencode({"message": USER_EXISTS_MESSAGE})
            return RedirectResponse(f"/login?{query}", status_code=status.HTTP_303_SEE_OTHER)
        return render_public(
            request, "register.html", status_code=status.HTTP_400_BAD_REQUEST, email=email, error=e.message
        )
    return render_public(request, "register.html", success=message)


@router.get("/forgot-password", summary="비밀번호 재설정 화면")
def forgot_password_page(request: Request):
    return render_public(request, "forgot_password.html")


@router.post("/forgot-password", summary="비밀번호 재설정 메일 발송")
def forgot_password(request: Request, email: str = Form("")):
    try:
        message = request_password_reset(email.strip())
    except IdentityError as e:
        return render_public(
            request, "forgot_password.html", status_code=status.HTTP_400_BAD_REQUEST, email=email, error=e.message
        )
    return render_public(request, "forgot_password.html", success=message)


@router.post("/logout", summary="로그아웃")
def logout(
        session: Optional[SessionContext] = Depends(get_session_context),
        db: Session = Depends(get_db)
):
    sign_out(db, session.user_id if session else None)
    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookies(response)
    return response


@router.post("/auth/refresh", response_model=TokenResponse,
             summary="리프레시 토큰 갱신",
             description="refresh_token 쿠키를 폐기하고 새 토큰 쌍을 발급합니다."
             )
def refresh_token(request: Request, response: Response, db: Session = Depends(get_db)):
    current = request.cookies.get(REFRESH_TOKEN_COOKIE)
    if not current:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Refresh token is missing")
    access_token, new_refresh_token = rotate_refresh_token(db, current)
    set_session_cookies(response, access_token, new_refresh_token)
    return TokenResponse(access_token=access_token, refresh_token=new_refresh_token)
