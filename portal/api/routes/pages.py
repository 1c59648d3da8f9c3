from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from portal.api.shell import render_page
from portal.dependencies.auth import require_session
from portal.dependencies.db import get_db
from portal.schemas.auth import SessionContext

router = APIRouter()

ANNOUNCEMENTS = [
    {
        "title": "Admissions Open for the New Batch",
        "date": "Monday, September 1, 2025",
        "body": "Registrations for the next batch are open at all campuses. Visit the admin office with your documents.",
    },
    {
        "title": "Mid-term Exams Schedule",
        "date": "Friday, October 10, 2025",
        "body": "Mid-term exams start next month. Check the Exam page for your results once they are published.",
    },
    {
        "title": "Student ID Cards",
        "date": "Wednesday, October 15, 2025",
        "body": "You can print or download your student card from the Get Student Card page.",
    },
]

# 고정 과정 카드
MY_COURSES = [
    {
        "name": "Certified AI, Metaverse, And Web 3.0 Developer & Solopreneur (WMD)",
        "status": "LEARNING",
        "summary": "A one year Web 3.0 and Metaverse Developer program.",
        "batch": "Batch 1",
        "city": "Karachi",
        "quarter": "Q3",
        "currently": "Onsite",
    },
]


@router.get("/announcements", summary="공지사항")
def announcements_page(
        request: Request,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    return render_page(request, "announcements.html", db, session, announcements=ANNOUNCEMENTS)


@router.get("/info", summary="안내")
def info_page(
        request: Request,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    return render_page(request, "info.html", db, session)


@router.get("/textbooks", summary="교재 (준비 중)")
def textbooks_page(
        request: Request,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    return render_page(request, "textbooks.html", db, session)


@router.get("/my-courses", summary="내 과정")
def my_courses_page(
        request: Request,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    return render_page(request, "my_courses.html", db, session, courses=MY_COURSES)
