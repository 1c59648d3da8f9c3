import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from portal.api.shell import render_page
from portal.core.exceptions import AvatarUploadError, ProfileSaveError
from portal.core.page import PageState, PageView
from portal.db.store import StoreError
from portal.dependencies.auth import require_session
from portal.dependencies.db import get_db
from portal.schemas.auth import SessionContext
from portal.schemas.student import StudentProfileUpdate, StudentProfileView
from portal.services.student import (
    get_cached_student, get_student_profile, resolve_avatar_url, save_student_profile, upload_avatar
)
from portal.core.cache import cache, tags_for

logger = logging.getLogger(__name__)

router = APIRouter()

GENDER_OPTIONS = ["Male", "Female"]
CURRENTLY_OPTIONS = ["Onsite", "Online"]


def _render_profile(request, db, session, profile: StudentProfileView, *, exists: bool, edit: bool,
                    error: Optional[str] = None, saved: bool = False, status_code: int = 200):
    return render_page(
        request, "profile.html", db, session, status_code=status_code,
        profile=profile,
        exists=exists,
        edit=edit,
        error=error,
        saved=saved,
        profile_avatar=resolve_avatar_url(profile.avatar),
        gender_options=GENDER_OPTIONS,
        currently_options=CURRENTLY_OPTIONS,
    )


@router.get("/profile", summary="내 프로필")
def profile_page(
        request: Request,
        edit: bool = False,
        saved: bool = False,
        refresh: bool = False,
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    if refresh:
        cache.invalidate_tags(tags_for("student", {"user_id": session.user_id}))
    try:
        profile, exists = get_student_profile(db, session)
    except StoreError as e:
        logger.error(f"프로필 조회 실패 - user_id={session.user_id}: {e.message}")
        view = PageView(state=PageState.ERROR, message="Could not fetch profile.")
        return render_page(request, "profile.html", db, session, view=view, edit=False,
                           profile=StudentProfileView(email=session.email or ""), exists=False,
                           profile_avatar=resolve_avatar_url(None))
    # 프로필이 없으면 바로 편집 화면
    return _render_profile(request, db, session, profile, exists=exists, edit=edit or not exists, saved=saved)


@router.post("/profile", summary="프로필 저장")
def save_profile(
        request: Request,
        full_name: str = Form(""),
        father_name: str = Form(""),
        student_id: str = Form(""),
        roll_no: str = Form(""),
        city: str = Form(""),
        gender: str = Form("Male"),
        email: str = Form(""),
        currently: str = Form("Onsite"),
        course: str = Form(""),
        batch: str = Form(""),
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    profile_in = StudentProfileUpdate(
        full_name=full_name, father_name=father_name, student_id=student_id, roll_no=roll_no,
        city=city, gender=gender, email=email or session.email, currently=currently,
        course=course, batch=batch,
    )
    try:
        save_student_profile(db, session.user_id, profile_in)
    except ProfileSaveError as e:
        logger.error(f"프로필 저장 실패 - user_id={session.user_id}: {e.message}")
        view = StudentProfileView(**profile_in.model_dump(exclude_none=True))
        try:
            exists = get_cached_student(db, session.user_id) is not None
        except StoreError:
            exists = False
        return _render_profile(request, db, session, view, exists=exists, edit=True,
                               error=e.message, status_code=status.HTTP_400_BAD_REQUEST)
    return RedirectResponse("/profile?saved=1", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/profile/avatar", summary="프로필 이미지 업로드")
def upload_profile_avatar(
        request: Request,
        file: UploadFile = File(...),
        session: SessionContext = Depends(require_session),
        db: Session = Depends(get_db)
):
    try:
        path = upload_avatar(session.user_id, file)
        save_student_profile(db, session.user_id, StudentProfileUpdate(avatar=path))
    except (AvatarUploadError, ProfileSaveError) as e:
        logger.error(f"아바타 업로드 실패 - user_id={session.user_id}: {e.message}")
        profile, exists = get_student_profile(db, session)
        return _render_profile(request, db, session, profile, exists=exists, edit=True,
                               error=e.message, status_code=status.HTTP_400_BAD_REQUEST)
    return RedirectResponse("/profile?saved=1", status_code=status.HTTP_303_SEE_OTHER)
