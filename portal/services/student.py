import logging
import os
import time
from typing import Optional
from urllib.parse import quote

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError
from fastapi import UploadFile
from sqlalchemy.orm import Session

from portal.core.cache import cache, tags_for
from portal.core.config import settings
from portal.core.exceptions import AvatarUploadError, ProfileSaveError
from portal.db.store import StoreError, fetch_one, insert_row, update_rows
from portal.models.student import Student
from portal.schemas.auth import SessionContext
from portal.schemas.student import StudentProfileUpdate, StudentProfileView, StudentRow

logger = logging.getLogger(__name__)

STUDENT_CACHE_TTL = 3600

s3_client = boto3.client(
    "s3",
    aws_access_key_id=settings.AWS_ACCESS_KEY,
    aws_secret_access_key=settings.AWS_SECRET_KEY,
    region_name=settings.AWS_REGION
)


def get_student_row(db: Session, user_id: str) -> Optional[StudentRow]:
    """ 캐시를 거치지 않고 students 테이블에서 직접 조회 """
    return fetch_one(db, Student, StudentRow, filters={"user_id": user_id})


def get_cached_student(db: Session, user_id: str) -> Optional[StudentRow]:
    return cache.get_or_load(
        [f"student-{user_id}"],
        lambda: get_student_row(db, user_id),
        tags=[f"student-{user_id}", f"profile-{user_id}"],
        ttl=STUDENT_CACHE_TTL,
    )


def get_student_profile(db: Session, session: SessionContext) -> tuple[StudentProfileView, bool]:
    """
    프로필 화면용 데이터를 반환합니다.
    아직 프로필 행이 없으면 기본값(세션 이메일 포함)과 함께 False를 돌려줍니다.
    """
    row = get_cached_student(db, session.user_id)
    if row is None:
        return StudentProfileView(email=session.email or ""), False
    return StudentProfileView.from_row(row), True


def save_student_profile(db: Session, user_id: str, profile_in: StudentProfileUpdate) -> None:
    """
    user_id 기준으로 먼저 갱신을 시도하고, 갱신된 행이 없거나 갱신이 실패하면 새 행을 추가합니다.
    성공하면 반환 전에 해당 학생의 캐시 태그를 모두 무효화합니다.
    """
    values = profile_in.model_dump(exclude_none=True)
    if not values:
        return

    try:
        updated = update_rows(db, Student, {"user_id": user_id}, values)
    except StoreError as e:
        logger.warning(f"프로필 갱신 실패, 추가로 전환 - user_id={user_id}: {e.message}")
        updated = 0

    if updated == 0:
        try:
            insert_row(db, Student, {"user_id": user_id, **values})
        except StoreError as e:
            raise ProfileSaveError(f"Failed to create profile: {e.message}")
        logger.info(f"프로필 생성 - user_id={user_id}")
    else:
        logger.info(f"프로필 갱신 - user_id={user_id}")

    cache.invalidate_tags(tags_for("student", {"user_id": user_id}))


def build_avatar_path(user_id: str, filename: str, now: Optional[float] = None) -> str:
    """ {user-id}/{timestamp}.{extension} 형식의 버킷 경로 """
    ext = os.path.splitext(filename or "")[1].lstrip(".") or "png"
    timestamp = int((now if now is not None else time.time()) * 1000)
    return f"{user_id}/{timestamp}.{ext.lower()}"


def upload_avatar(user_id: str, file: UploadFile) -> str:
    """
    아바타 이미지를 avatars 버킷에 업로드하고 저장된 경로를 반환합니다.
    """
    path = build_avatar_path(user_id, file.filename)
    try:
        s3_client.upload_fileobj(
            file.file,
            settings.AWS_S3_BUCKET_NAME,
            path,
            ExtraArgs={"ContentType": file.content_type or "application/octet-stream", "CacheControl": "max-age=3600"}
        )
    except NoCredentialsError:
        raise AvatarUploadError("Failed to upload avatar. S3 credentials are not configured.")
    except (BotoCoreError, ClientError) as e:
        raise AvatarUploadError(f"Failed to upload avatar. {e}")
    return path


def resolve_avatar_url(path: Optional[str]) -> str:
    """
    버킷 경로를 공개 URL로 변환합니다. 경로가 없거나 변환할 수 없으면 기본 이미지 URL.
    """
    if not isinstance(path, str) or not path.strip():
        return settings.DEFAULT_AVATAR_URL
    path = path.strip()
    if path.startswith(("http://", "https://")):
        return path
    try:
        key = quote(path.lstrip("/"))
        if not key:
            raise ValueError("empty key")
        if settings.AWS_S3_PUBLIC_BASE_URL:
            return f"{settings.AWS_S3_PUBLIC_BASE_URL.rstrip('/')}/{key}"
        if not settings.AWS_S3_BUCKET_NAME:
            raise ValueError("bucket is not configured")
        return f"https://{settings.AWS_S3_BUCKET_NAME}.s3.{settings.AWS_REGION}.amazonaws.com/{key}"
    except ValueError as e:
        logger.warning(f"아바타 URL 변환 실패, 기본 이미지 사용 - path={path}: {e}")
        return settings.DEFAULT_AVATAR_URL


def get_avatar_url_for(db: Session, user_id: str) -> str:
    try:
        student = get_cached_student(db, user_id)
    except StoreError:
        return settings.DEFAULT_AVATAR_URL
    return resolve_avatar_url(student.avatar if student else None)
