import os
from typing import Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from portal.schemas.auth import SessionContext
from portal.services.student import get_avatar_url_for

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
templates = Jinja2Templates(directory=os.path.join(BASE_DIR, "templates"))

# 사이드바 / 모바일 메뉴 공통 항목
NAV_ITEMS = [
    {"label": "Dashboard", "href": "/dashboard"},
    {"label": "My Courses", "href": "/my-courses"},
    {"label": "Profile", "href": "/profile"},
    {"label": "Get Student Card", "href": "/student-card"},
    {"label": "Online Lectures", "href": "/lectures"},
    {"label": "Text Books", "href": "/textbooks"},
    {"label": "Exam", "href": "/exam"},
    {"label": "Announcements", "href": "/announcements"},
]

# 작은 화면에서 가로로 넘기는 주요 링크
PRIMARY_LINKS = [
    {"label": "Text Books", "href": "/textbooks"},
    {"label": "Exam Details", "href": "/exam"},
    {"label": "Announcements", "href": "/announcements"},
]


def shell_context(request: Request, db: Session, session: Optional[SessionContext]) -> dict:
    """ 헤더/내비게이션/푸터 렌더링에 필요한 값. 아바타는 요청당 한 번 계산 """
    return {
        "session": session,
        "nav_items": NAV_ITEMS,
        "primary_links": PRIMARY_LINKS,
        "active_path": request.url.path,
        "avatar_url": get_avatar_url_for(db, session.user_id) if session else None,
    }


def render_page(
        request: Request,
        name: str,
        db: Session,
        session: Optional[SessionContext],
        status_code: int = 200,
        **context
):
    return templates.TemplateResponse(
        request,
        name,
        {**shell_context(request, db, session), **context},
        status_code=status_code,
    )


def render_public(request: Request, name: str, status_code: int = 200, **context):
    """ 로그인 전 화면 (셸 없이) """
    return templates.TemplateResponse(request, name, context, status_code=status_code)
