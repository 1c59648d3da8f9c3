# /portal/main.py
import logging
import os
import time
from contextlib import asynccontextmanager # Lifespan 사용 위해 import
from urllib.parse import urlencode

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

# --- Core / Config ---
from portal.core.config import settings
from portal.core.firebase import initialize_firebase # Firebase 초기화 함수 import
from portal.core.exceptions import CardRenderError, NotAuthenticated
from portal.db.base import Base
from portal.dependencies.db import engine

# --- API Routers ---
from portal.api.shell import BASE_DIR, templates
from portal.api.routes import auth as auth_router
from portal.api.routes import dashboard as dashboard_router
from portal.api.routes import profile as profile_router
from portal.api.routes import academics as academics_router
from portal.api.routes import pages as pages_router
from portal.api.routes import student_card as student_card_router
from portal.api.routes import proxy as proxy_router

# --- 미들웨어 import ---
from fastapi.middleware.cors import CORSMiddleware


logging.basicConfig(
    level=logging.INFO, # INFO 레벨 이상의 로그를 모두 출력하도록 설정
    format="%(asctime)s - %(levelname)s - %(message)s", # 로그 형식 지정
    force=True # 다른 라이브러리에 의해 이미 설정되었더라도 강제로 재설정
)
logger = logging.getLogger(__name__)


# --- Lifespan (애플리케이션 시작/종료 이벤트) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        initialize_firebase()
    except (ValueError, FileNotFoundError) as e:
        # 키가 없으면 로그인/토큰 검증만 실패하고 나머지 화면은 동작
        logger.warning(f"Firebase 초기화 건너뜀: {e}")
    Base.metadata.create_all(bind=engine)

    yield

# --- FastAPI App Instance ---
app = FastAPI(
    title="QuickTech Student Portal",
    lifespan=lifespan
)

@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()

    # 다음 미들웨어나 실제 엔드포인트를 호출
    response = await call_next(request)

    process_time = time.time() - start_time

    # 응답 헤더에 처리 시간 추가
    response.headers["X-Process-Time"] = str(process_time)

    # 로그에 경로와 처리 시간 기록
    logging.info(
        f"Request processed: {request.method} {request.url.path} - Completed in {process_time:.4f} secs"
    )

    return response


# --- 예외 처리 ---
@app.exception_handler(NotAuthenticated)
async def not_authenticated_handler(request: Request, exc: NotAuthenticated):
    query = urlencode({"redirectedFrom": exc.redirected_from or request.url.path})
    return RedirectResponse(f"/login?{query}", status_code=status.HTTP_303_SEE_OTHER)


@app.exception_handler(CardRenderError)
async def card_render_error_handler(request: Request, exc: CardRenderError):
    logger.error(f"학생증 생성 실패 - {request.url.path}: {exc.message}")
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": "Could not generate your student card", "message": exc.message, "retry_url": "/student-card"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"처리되지 않은 오류 - {request.method} {request.url.path}")
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": "Something went wrong", "message": "An unexpected error occurred.", "retry_url": request.url.path},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# --- CORS 미들웨어 설정 ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=os.path.join(BASE_DIR, "static")), name="static")

# --- 라우트 등록 ---
app.include_router(auth_router.router, tags=["Authentication"])
app.include_router(dashboard_router.router, tags=["dashboard"])
app.include_router(profile_router.router, tags=["profile"])
app.include_router(academics_router.router, tags=["academics"])
app.include_router(pages_router.router, tags=["pages"])
app.include_router(student_card_router.router, tags=["student-card"])

app.include_router(
    proxy_router.router,
    prefix=settings.PROXY_MOUNT_PATH,
    tags=["proxy"]
)
