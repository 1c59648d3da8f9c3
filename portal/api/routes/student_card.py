import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from portal.api.shell import render_page, templates
from portal.core.page import PageState, PageView
from portal.core.exceptions import CardRenderError
from portal.db.store import StoreError
from portal.dependencies.auth import require_session
from portal.dependencies.db import get_db
from portal.schemas.auth import SessionContext
from portal.services.student import get_cached_student
from portal.services.student_card import (
    CARD_FILENAME, StudentCard, back_side_text, build_student_card, export_card_pdf, front_side_text,
    prepare_print_document
)

logger = logging.getLogger(__name__)

router = APIRouter()


def render_face(side: str, card: StudentCard, images: dict) -> str:
    return templates.get_template(f"card/{side}.html").render(card=card, images=images)


def _load_card(db: Session, session: SessionContext) -> PageView:
    view = PageView()
    return view.load(
        lambda: get_cached_student(db, session.user_id),
        error_message="Could not fetch student details.",
        empty_message="No student profile found. Complete your profile to get your card.",
    )


@router.get("/student-card", summary="학생증")
def student_card_page(
        request: Request,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    view = _load_card(db, session)
    card = build_student_card(view.data) if view.state == PageState.POPULATED else None
    images = {"avatar": card.avatar_url, "qr": card.qr_url} if card else {}
    return render_page(request, "student_card.html", db, session, view=view, card=card, images=images)


@router.get("/student-card/print", summary="학생증 인쇄")
def student_card_print(
        request: Request,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    view = _load_card(db, session)
    if view.state != PageState.POPULATED:
        return render_page(request, "student_card.html", db, session, view=view, card=None, images={})

    card = build_student_card(view.data)
    document = prepare_print_document(card, render_face)
    return templates.TemplateResponse(
        request,
        "student_card_print.html",
        {
            "doc": document,
            "front_text": front_side_text(card),
            "back_text": back_side_text(card),
        },
    )


@router.get("/student-card/pdf", summary="학생증 PDF 다운로드")
def student_card_pdf(
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    try:
        student = get_cached_student(db, session.user_id)
    except StoreError as e:
        raise CardRenderError(f"Could not fetch student details. {e.message}")
    if student is None:
        raise CardRenderError("No student profile found. Complete your profile to get your card.")
    # CardRenderError는 앱 예외 핸들러가 재시도 링크가 있는 오류 화면으로 처리
    pdf = export_card_pdf(build_student_card(student))
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(CARD_FILENAME)}"},
    )
