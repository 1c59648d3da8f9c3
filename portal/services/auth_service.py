import logging
from typing import Optional

from sqlalchemy.orm import Session

from portal.core.config import settings
from portal.core.exceptions import IdentityError
from portal.db.store import StoreError, exists_any, insert_row
from portal.models.registered_student import RegisteredStudent
from portal.models.student import Student
from portal.services import identity
from portal.services.token_service import issue_token_pair, revoke_user_refresh_tokens

logger = logging.getLogger(__name__)

USER_EXISTS_MESSAGE = "User already exists. Please log in."
SIGN_UP_SUCCESS_MESSAGE = "Sign up successful! Please check your email to confirm your account."
RESET_SENT_MESSAGE = "Password reset email sent! Please check your inbox."


def get_gmail_variant(email: str) -> str:
    if email.lower().endswith("@gmail.com"):
        return email.lower()
    username = email.split("@")[0]
    return f"{username}@gmail.com"


def user_exists(db: Session, email: str) -> bool:
    """
    registered_students, students 순서로 이메일(또는 gmail 변형) 존재 여부를 확인합니다.
    """
    candidates = list(dict.fromkeys([email, get_gmail_variant(email)]))
    try:
        if exists_any(db, RegisteredStudent, "email", candidates):
            return True
        return exists_any(db, Student, "email", candidates)
    except StoreError as e:
        raise IdentityError(e.message or "Error checking user existence")


def authenticate_with_password(db: Session, email: str, password: str) -> tuple[str, str]:
    """
    비밀번호로 로그인하고 검증된 ID 토큰 기준으로 서비스 토큰 쌍(access, refresh)을 발급합니다.
    """
    if not email or not password:
        raise IdentityError("Please fill in all fields.")

    signed_in = identity.sign_in_with_password(email, password)
    decoded_token = identity.verify_id_token(signed_in["idToken"])

    uid = decoded_token["uid"]
    token_email = decoded_token.get("email") or email
    logger.info(f"로그인 성공 - uid={uid}")
    return issue_token_pair(db, uid, token_email)


def register_student(db: Session, email: str, password: str, confirm_password: str) -> str:
    if not email or not password or not confirm_password:
        raise IdentityError("Please fill in all fields.")
    if password != confirm_password:
        raise IdentityError("Passwords do not match.")

    if user_exists(db, email):
        raise IdentityError(USER_EXISTS_MESSAGE, code="USER_EXISTS")

    signed_up = identity.sign_up(email, password)
    identity.send_email_verification(signed_up["idToken"])

    try:
        insert_row(db, RegisteredStudent, {"email": email})
    except StoreError as e:
        # 계정은 이미 만들어졌으므로 기록 실패는 가입 실패로 보지 않음
        logger.error(f"registered_students 기록 실패 - email={email}: {e.message}")

    logger.info(f"회원가입 완료 - uid={signed_up.get('localId')}")
    return SIGN_UP_SUCCESS_MESSAGE


def request_password_reset(email: str) -> str:
    if not email:
        raise IdentityError("Please enter your email address.")
    identity.send_password_reset(email, continue_url=f"{settings.PUBLIC_BASE_URL.rstrip('/')}/reset-password")
    return RESET_SENT_MESSAGE


def sign_out(db: Session, uid: Optional[str]) -> None:
    if not uid:
        return
    revoked = revoke_user_refresh_tokens(db, uid)
    identity.revoke_provider_tokens(uid)
    logger.info(f"로그아웃 - uid={uid}, 폐기된 refresh token {revoked}개")
