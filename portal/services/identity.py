"""Firebase Authentication REST client.

Password sign-in, sign-up and the out-of-band e-mails (verification and password
reset) are only available through the Identity Toolkit REST API; token
verification and revocation go through the Admin SDK.
"""
import logging
from typing import Optional

import requests
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from portal.core.config import settings
from portal.core.exceptions import IdentityError

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
REQUEST_TIMEOUT = 10

# Identity Toolkit 오류 코드 → 화면 메시지
ERROR_MESSAGES = {
    "EMAIL_EXISTS": "User already exists. Please log in.",
    "EMAIL_NOT_FOUND": "Invalid login credentials",
    "INVALID_PASSWORD": "Invalid login credentials",
    "INVALID_LOGIN_CREDENTIALS": "Invalid login credentials",
    "USER_DISABLED": "This account has been disabled.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Please try again later.",
    "INVALID_EMAIL": "Please enter a valid email address.",
}


def _post(endpoint: str, payload: dict) -> dict:
    url = f"{IDENTITY_TOOLKIT_URL}/{endpoint}"
    try:
        response = requests.post(
            url,
            params={"key": settings.FIREBASE_WEB_API_KEY},
            json=payload,
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error(f"Identity provider unreachable ({endpoint}): {e}")
        raise IdentityError("Authentication service is unavailable. Please try again.")

    try:
        data = response.json() if response.content else {}
    except ValueError:
        data = {}
    if not response.ok:
        # e.g. "WEAK_PASSWORD : Password should be at least 6 characters"
        raw = data.get("error", {}).get("message", "UNKNOWN")
        code = raw.split(" ")[0]
        message = ERROR_MESSAGES.get(code)
        if message is None:
            message = raw.split(":", 1)[1].strip() if ":" in raw else raw.replace("_", " ").capitalize()
        logger.info(f"Identity provider rejected {endpoint}: {raw}")
        raise IdentityError(message, code=code)
    return data


def sign_in_with_password(email: str, password: str) -> dict:
    """ idToken, localId, email, refreshToken 포함 """
    return _post("accounts:signInWithPassword", {"email": email, "password": password, "returnSecureToken": True})


def sign_up(email: str, password: str) -> dict:
    return _post("accounts:signUp", {"email": email, "password": password, "returnSecureToken": True})


def send_email_verification(id_token: str) -> None:
    _post("accounts:sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": id_token})


def send_password_reset(email: str, continue_url: Optional[str] = None) -> None:
    payload = {"requestType": "PASSWORD_RESET", "email": email}
    if continue_url:
        payload["continueUrl"] = continue_url
    _post("accounts:sendOobCode", payload)


def verify_id_token(id_token: str) -> dict:
    """
    Firebase ID 토큰을 검증하고 디코딩된 클레임(uid, email 등)을 반환합니다.
    """
    try:
        return firebase_auth.verify_id_token(id_token)
    except firebase_auth.ExpiredIdTokenError:
        raise IdentityError("Your session has expired. Please log in again.", code="EXPIRED_ID_TOKEN")
    except firebase_auth.InvalidIdTokenError as e:
        logger.warning(f"Invalid Firebase ID token: {e}")
        raise IdentityError("Login failed", code="INVALID_ID_TOKEN")


def revoke_provider_tokens(uid: str) -> None:
    try:
        firebase_auth.revoke_refresh_tokens(uid)
    except (firebase_exceptions.FirebaseError, ValueError) as e:
        logger.warning(f"Firebase 토큰 폐기 실패 - uid={uid}: {e}")
