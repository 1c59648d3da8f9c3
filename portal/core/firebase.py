import os
import logging
import firebase_admin
from firebase_admin import credentials

from portal.core.config import settings

logger = logging.getLogger(__name__)


def initialize_firebase():
    """
    서비스 계정 키로 Firebase Admin SDK를 초기화합니다.
    ID 토큰 검증과 토큰 폐기에만 사용하며, 애플리케이션 시작 시 한 번 호출되어야 합니다.
    """
    key_path = settings.FIREBASE_SERVICE_ACCOUNT_KEY_PATH

    if not key_path:
        raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY_PATH 환경 변수가 설정되지 않았습니다.")
    if not os.path.exists(key_path):
        raise FileNotFoundError(f"Firebase 서비스 계정 키 파일을 찾을 수 없습니다: {key_path}")

    try:
        if not firebase_admin._apps:
            cred = credentials.Certificate(key_path)
            firebase_admin.initialize_app(cred)
            logger.info("Firebase Admin SDK가 성공적으로 초기화되었습니다.")
        else:
            logger.info("Firebase Admin SDK가 이미 초기화되어 있습니다.")
    except Exception as e:
        logger.error(f"Firebase Admin SDK 초기화 실패: {e}")
        raise e
