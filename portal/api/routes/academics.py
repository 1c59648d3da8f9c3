import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from portal.api.shell import render_page
from portal.core.exceptions import EnrollmentError
from portal.core.page import load_page
from portal.dependencies.auth import require_session
from portal.dependencies.db import get_db
from portal.schemas.auth import SessionContext
from portal.services.academics import (
    can_open_portal, get_cached_lectures, get_cached_semesters, get_cached_student_results, open_semester_portal
)

logger = logging.getLogger(__name__)

router = APIRouter()

EXAM_GUIDELINES = [
    "Arrive at the exam center at least 30 minutes before the exam starts.",
    "Bring your student ID card; you will not be admitted without it.",
    "Mobile phones and smart watches are not allowed in the exam hall.",
    "Results are published on the portal within two weeks of the exam.",
]


@router.get("/exam", summary="시험 결과")
def exam_page(
        request: Request,
        refresh: bool = False,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    # 최신 학기 먼저
    results = load_page(
        lambda: list(reversed(get_cached_student_results(db, session.user_id))),
        refresh=refresh,
        tags=[f"student-{session.user_id}", f"results-{session.user_id}"],
        error_message="Could not fetch exam results.",
        empty_message="No exam results found.",
    )
    return render_page(request, "exam.html", db, session, results=results, guidelines=EXAM_GUIDELINES)


@router.get("/lectures", summary="온라인 강의 목록")
def lectures_page(
        request: Request,
        refresh: bool = False,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    lectures = load_page(
        lambda: get_cached_lectures(db),
        refresh=refresh,
        tags=["lectures"],
        error_message="Could not fetch lectures.",
        empty_message="No lectures found.",
    )
    return render_page(request, "lectures.html", db, session, lectures=lectures)


def _render_courses(request, db, session, refresh: bool = False, error: str | None = None, status_code: int = 200):
    semesters = load_page(
        lambda: get_cached_semesters(db),
        refresh=refresh,
        tags=["semesters"],
        error_message="Could not fetch semesters.",
        empty_message="No semesters found.",
    )
    return render_page(
        request, "courses.html", db, session, status_code=status_code,
        semesters=semesters,
        can_open=lambda semester: can_open_portal(semester, session),
        error=error,
    )


@router.get("/courses", summary="학기 목록")
def courses_page(
        request: Request,
        refresh: bool = False,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    return _render_courses(request, db, session, refresh=refresh)


@router.post("/courses/{semester_id}/open", summary="학기 포털 열기")
def open_portal(
        request: Request,
        semester_id: int,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    try:
        semester = open_semester_portal(db, session, semester_id)
    except EnrollmentError as e:
        logger.warning(f"포털 열기 실패 - semester_id={semester_id}: {e.message}")
        return _render_courses(request, db, session, error=e.message, status_code=status.HTTP_400_BAD_REQUEST)
    query = urlencode({"semester": semester.name})
    return RedirectResponse(f"/dashboard?{query}", status_code=status.HTTP_303_SEE_OTHER)
