from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from portal.api.shell import render_page, render_public
from portal.core.page import load_page
from portal.db.store import StoreError
from portal.dependencies.auth import get_session_context, require_session
from portal.dependencies.db import get_db
from portal.schemas.auth import SessionContext
from portal.services.academics import get_cached_student_results
from portal.services.student import get_cached_student, resolve_avatar_url

router = APIRouter()


@router.get("/", summary="랜딩 페이지")
def landing(
        request: Request,
        session: Optional[SessionContext] = Depends(get_session_context)
):
    # 로그인 상태에서 루트로 오면 대시보드로 교체
    if session is not None:
        return RedirectResponse("/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    return render_public(request, "landing.html")


@router.get("/dashboard", summary="대시보드")
def dashboard(
        request: Request,
        semester: Optional[str] = None,
        refresh: bool = False,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    results = load_page(
        lambda: get_cached_student_results(db, session.user_id),
        refresh=refresh,
        tags=[f"student-{session.user_id}", f"results-{session.user_id}"],
        error_message="Could not fetch results.",
        empty_message="No results found.",
    )
    try:
        student = get_cached_student(db, session.user_id)
    except StoreError:
        student = None

    return render_page(
        request, "dashboard.html", db, session,
        results=results,
        student=student,
        student_avatar=resolve_avatar_url(student.avatar if student else None),
        semester=semester,
    )
