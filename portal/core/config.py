import os
import json
from dotenv import load_dotenv

load_dotenv()


def _json_env(name: str) -> dict:
    raw = os.getenv(name)
    if not raw:
        return {}
    return json.loads(raw)


class Settings:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./portal.db")

    # 아바타 버킷 (S3)
    AWS_ACCESS_KEY = os.getenv("AWS_ACCESS_KEY", "accesskey")
    AWS_SECRET_KEY = os.getenv("AWS_SECRET_KEY", "supersecret")
    AWS_REGION = os.getenv("AWS_REGION", "ap-northeast-2")
    AWS_S3_BUCKET_NAME = os.getenv("AWS_S3_BUCKET_NAME", "avatars")
    AWS_S3_PUBLIC_BASE_URL = os.getenv("AWS_S3_PUBLIC_BASE_URL")
    DEFAULT_AVATAR_URL = os.getenv("DEFAULT_AVATAR_URL", "https://github.com/shadcn.png")

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-secret")
    JWT_ALGORITHM = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))
    REFRESH_TOKEN_EXPIRE_DAYS = int(os.getenv("REFRESH_TOKEN_EXPIRE_DAYS", 7))
    COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"

    # Firebase Authentication
    FIREBASE_SERVICE_ACCOUNT_KEY_PATH = os.getenv("FIREBASE_SERVICE_ACCOUNT_KEY_PATH")
    FIREBASE_WEB_API_KEY = os.getenv("FIREBASE_WEB_API_KEY", "")
    PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

    QR_SERVICE_URL = os.getenv("QR_SERVICE_URL", "https://api.qrserver.com/v1/create-qr-code/")

    PROXY_TARGET = os.getenv("PROXY_TARGET")
    PROXY_MOUNT_PATH = os.getenv("PROXY_MOUNT_PATH", "/api/proxy")
    PROXY_PATH_REWRITE = _json_env("PROXY_PATH_REWRITE")
    PROXY_HEADERS = _json_env("PROXY_HEADERS")
    PROXY_CHANGE_ORIGIN = os.getenv("PROXY_CHANGE_ORIGIN", "true").lower() == "true"

settings = Settings()
