"""Generic HTTP forwarder.

Rewrites an inbound path with ordered pattern/replacement rules, overlays fixed
headers and relays the request to a configured upstream. The upstream response is
returned as received; there is no retry and no timeout beyond the transport's.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional
from urllib.parse import urlsplit

import requests

logger = logging.getLogger(__name__)

# 요청/응답 어느 쪽으로도 전달하지 않는 헤더
HOP_BY_HOP_HEADERS = {
    "connection", "keep-alive", "proxy-authenticate", "proxy-authorization",
    "te", "trailer", "transfer-encoding", "upgrade",
}
# requests가 본문을 풀어서 돌려주므로 응답에서는 길이/인코딩 헤더도 제외
EXCLUDED_RESPONSE_HEADERS = HOP_BY_HOP_HEADERS | {"content-encoding", "content-length"}


@dataclass
class ProxyConfig:
    target: str
    change_origin: bool = True
    path_rewrite: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)


class Proxy:
    def __init__(self, config: ProxyConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def rewrite_path(self, path: str) -> str:
        # 규칙 순서대로, 각 규칙은 첫 번째 일치만 치환
        for pattern, replacement in self.config.path_rewrite.items():
            path = re.sub(pattern, replacement, path, count=1)
        return path

    def build_url(self, path: str, query: str = "") -> str:
        # 업스트림 기본 경로 뒤에 이어 붙임
        url = f"{self.config.target.rstrip('/')}/{self.rewrite_path(path).lstrip('/')}"
        if query:
            url = f"{url}?{query}"
        return url

    def build_headers(self, inbound: Mapping[str, str]) -> dict[str, str]:
        headers = {k: v for k, v in inbound.items() if k.lower() not in HOP_BY_HOP_HEADERS}
        if self.config.change_origin:
            headers = {k: v for k, v in headers.items() if k.lower() != "host"}
            headers["host"] = urlsplit(self.config.target).netloc
        for key, value in self.config.headers.items():
            headers = {k: v for k, v in headers.items() if k.lower() != key.lower()}
            headers[key] = value
        return headers

    def forward(
            self,
            method: str,
            path: str,
            query: str = "",
            headers: Optional[Mapping[str, str]] = None,
            body: Optional[bytes] = None,
    ) -> requests.Response:
        url = self.build_url(path, query)
        logger.info(f"Proxy {method} {path} -> {url}")
        return self.session.request(
            method,
            url,
            headers=self.build_headers(headers or {}),
            data=body or None,
            allow_redirects=False,
        )


def relay_headers(upstream: requests.Response) -> dict[str, str]:
    return {k: v for k, v in upstream.headers.items() if k.lower() not in EXCLUDED_RESPONSE_HEADERS}


def create_proxy(config: ProxyConfig) -> Proxy:
    return Proxy(config)
