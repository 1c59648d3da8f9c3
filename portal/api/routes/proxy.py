import logging
from functools import lru_cache

import requests
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from portal.core.config import settings
from portal.core.proxy import Proxy, ProxyConfig, create_proxy, relay_headers

logger = logging.getLogger(__name__)

router = APIRouter()

PROXY_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


@lru_cache
def _configured_proxy() -> Proxy:
    # 재작성 규칙이 없으면 마운트 경로만 떼어냄
    path_rewrite = settings.PROXY_PATH_REWRITE or {f"^{settings.PROXY_MOUNT_PATH}": ""}
    return create_proxy(ProxyConfig(
        target=settings.PROXY_TARGET,
        change_origin=settings.PROXY_CHANGE_ORIGIN,
        path_rewrite=path_rewrite,
        headers=settings.PROXY_HEADERS,
    ))


def get_proxy() -> Proxy:
    if not settings.PROXY_TARGET:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Proxy target is not configured")
    return _configured_proxy()


@router.api_route("/{path:path}", methods=PROXY_METHODS, summary="업스트림 프록시", include_in_schema=False)
async def forward(request: Request, path: str, proxy: Proxy = Depends(get_proxy)):
    body = await request.body()
    try:
        upstream = await run_in_threadpool(
            proxy.forward,
            request.method,
            request.url.path,
            request.url.query,
            dict(request.headers),
            body,
        )
    except requests.RequestException as e:
        logger.error(f"Proxy upstream error - {request.method} {request.url.path}: {e}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Upstream request failed")

    return Response(content=upstream.content, status_code=upstream.status_code, headers=relay_headers(upstream))
